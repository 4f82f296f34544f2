"""Download every object of the question-images bucket into a local folder.

    python scripts/backup_storage.py --dir storage-backup
"""

from __future__ import annotations

import argparse
import logging
import os
import pathlib
import sys

# Ensure imports work when running from any CWD and in Docker (/app)
_HERE = pathlib.Path(__file__).resolve()
_BACKEND_ROOT = _HERE.parents[1]
sys.path.insert(0, str(_BACKEND_ROOT))
sys.path.insert(0, "/app")
sys.path.insert(0, os.getcwd())

from app.core.config import settings
from app.services.storage import download_bytes, list_keys


log = logging.getLogger("autoskola.backup")


def backup(*, bucket: str, out_dir: pathlib.Path) -> tuple[int, int]:
    keys = list(list_keys(bucket=bucket))
    log.info("found %s objects in %s, writing to %s", len(keys), bucket, out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    ok = 0
    fail = 0
    for key in keys:
        try:
            data = download_bytes(object_key=key, bucket=bucket)
        except Exception as e:
            log.error("FAIL %s %s", key, e)
            fail += 1
            continue
        dst = out_dir / key
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_bytes(data)
        ok += 1
        if ok % 50 == 0:
            log.info("...%s/%s", ok, len(keys))
    return ok, fail


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Back up the question image bucket")
    parser.add_argument("--bucket", default=os.getenv("BUCKET_NAME") or settings.s3_bucket)
    parser.add_argument("--dir", default=settings.storage_backup_dir)
    args = parser.parse_args(argv)

    ok, fail = backup(bucket=args.bucket, out_dir=pathlib.Path(args.dir))
    print(f"Done. OK={ok}, FAIL={fail}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
