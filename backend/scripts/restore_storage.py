"""Upload a local backup folder back into the question-images bucket (overwriting)."""

from __future__ import annotations

import argparse
import logging
import mimetypes
import os
import pathlib
import sys

_HERE = pathlib.Path(__file__).resolve()
_BACKEND_ROOT = _HERE.parents[1]
sys.path.insert(0, str(_BACKEND_ROOT))
sys.path.insert(0, "/app")
sys.path.insert(0, os.getcwd())

from app.core.config import settings
from app.services.storage import upload_bytes


log = logging.getLogger("autoskola.restore")


def walk(src_dir: pathlib.Path) -> list[pathlib.Path]:
    return sorted(p for p in src_dir.rglob("*") if p.is_file())


def restore(*, bucket: str, src_dir: pathlib.Path) -> tuple[int, int]:
    files = walk(src_dir)
    log.info('uploading %s files into bucket "%s"', len(files), bucket)
    ok = 0
    fail = 0
    for path in files:
        key = path.relative_to(src_dir).as_posix()
        try:
            upload_bytes(
                object_key=key,
                data=path.read_bytes(),
                content_type=mimetypes.guess_type(path.name)[0],
                bucket=bucket,
            )
            ok += 1
        except Exception as e:
            log.error("FAIL %s %s", key, e)
            fail += 1
        if (ok + fail) % 50 == 0:
            log.info("...%s/%s", ok + fail, len(files))
    return ok, fail


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Restore the question image bucket from a local folder")
    parser.add_argument("--bucket", default=os.getenv("BUCKET_NAME") or settings.s3_bucket)
    parser.add_argument("--dir", default=settings.storage_backup_dir)
    args = parser.parse_args(argv)

    src = pathlib.Path(args.dir)
    if not src.is_dir():
        parser.error(f"backup directory not found: {src}")
    ok, fail = restore(bucket=args.bucket, src_dir=src)
    print(f"Done. OK={ok}, FAIL={fail}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
