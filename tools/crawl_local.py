import argparse
import logging
import os
import sys

# Ensure repo root is on sys.path so `invitecrawl` package imports resolve when
# running the script directly.
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

from invitecrawl.container import Container
from invitecrawl.services.blob_store import FileBlobStore


logging.basicConfig(level=logging.INFO)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run one crawl in the foreground from a YAML profile")
    parser.add_argument("profile", help="path to a crawl profile (.yml)")
    parser.add_argument("--data-dir", help="blob store directory (default: INVITECRAWL_DATA_DIR)")
    parser.add_argument("--interval", type=float, default=2.0, help="seconds between progress lines")
    args = parser.parse_args(argv)

    container = Container()
    if args.data_dir:
        container.blob_store.override(FileBlobStore(base_dir=args.data_dir))

    profile = container.profile_loader().load(args.profile)
    container.config_service().apply_profile(profile)

    engine = container.crawl_engine()
    result = engine.start(profile.seed_urls, settings=profile.settings)
    print(result.message)
    if not result.success:
        return 1

    try:
        while not engine.join(timeout=args.interval):
            st = engine.status()
            print(f"{st.progress:3d}%  processed={st.processed_urls}/{st.total_urls}  failed={st.failed_urls}  current={st.current_url}")
    except KeyboardInterrupt:
        print(engine.stop().message)
        engine.join()

    st = engine.status()
    print(f"Finished ({engine.last_job.stop_reason.value}): processed={st.processed_urls} failed={st.failed_urls}")
    for msg in st.errors:
        print(f"  error: {msg}")
    for bucket in container.result_store().list_buckets():
        print(f"{bucket.bucket}: {len(bucket.matches)} invite link(s)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
