#!/usr/bin/env python3
"""
01_fetch_incidents.py

Download the NYPD Shooting Incident Data (Historic) CSV from NYC Open Data.

Outputs:
- data/raw/shooting_incidents/raw_shooting_incidents_YYYYMMDD.csv (raw snapshot)
- data/processed/metadata/raw_shooting_incidents_YYYYMMDD_metadata.json

Data Source:
- https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8
"""

from datetime import datetime, timezone

import requests

from precinct_typology.config import load_params
from precinct_typology.io_utils import atomic_write
from precinct_typology.logging_utils import get_logger
from precinct_typology.paths import INCIDENTS_RAW_DIR, ensure_dirs_exist
from precinct_typology.provenance import hash_file, write_metadata_sidecar

CHUNK_SIZE = 1 << 20


def download_csv(url: str, output_path, timeout: int, logger) -> int:
    """Stream url to output_path atomically; return bytes written."""
    logger.info(f"Downloading {url}")

    n_bytes = 0
    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with atomic_write(output_path, mode="wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                f.write(chunk)
                n_bytes += len(chunk)

    logger.info(f"Downloaded {n_bytes / 1e6:.1f} MB to {output_path}")
    return n_bytes


def main():
    """Main entry point."""
    with get_logger("01_fetch_incidents") as logger:
        logger.info("Starting 01_fetch_incidents.py")
        ensure_dirs_exist()

        params = load_params()
        logger.log_config(params)
        source = params["source"]

        stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
        output_path = INCIDENTS_RAW_DIR / f"raw_shooting_incidents_{stamp}.csv"

        try:
            n_bytes = download_csv(source["url"], output_path, source["timeout_seconds"], logger)

            with open(output_path, "r", encoding="utf-8") as f:
                n_rows = sum(1 for _ in f) - 1

            logger.log_outputs({"raw_incidents": str(output_path)})
            logger.log_metrics({"bytes": n_bytes, "rows": n_rows})

            write_metadata_sidecar(
                output_path=output_path,
                inputs={},
                config=params,
                run_id=logger.run_id,
                extra={
                    "source_name": source["name"],
                    "source_url": source["url"],
                    "sha256": hash_file(output_path),
                    "rows": n_rows,
                    "fetched_at": datetime.now(timezone.utc).isoformat(),
                },
            )

            logger.info(f"SUCCESS: fetched {n_rows:,} incident records")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
