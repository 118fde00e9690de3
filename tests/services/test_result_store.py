import threading

from invitecrawl.domain.target_match import TargetMatch
from invitecrawl.services.blob_store import FileBlobStore
from invitecrawl.services.result_store import ResultStore


def _m(code: str) -> TargetMatch:
    return TargetMatch(code=code, url=f"https://chat.whatsapp.com/{code}")


def test_append_dedups_by_code_first_seen_wins(tmp_path):
    store = ResultStore(FileBlobStore(base_dir=str(tmp_path)))
    assert store.append_matches("example", [_m("AAA"), _m("BBB")]) == 2
    later = TargetMatch(code="AAA", url="https://chat.whatsapp.com/invite/AAA")
    assert store.append_matches("example", [later, _m("CCC")]) == 1

    bucket = store.get_bucket("example")
    assert [m.code for m in bucket.matches] == ["AAA", "BBB", "CCC"]
    assert bucket.matches[0].url == "https://chat.whatsapp.com/AAA"


def test_append_nothing_is_a_noop(tmp_path):
    blobs = FileBlobStore(base_dir=str(tmp_path))
    store = ResultStore(blobs)
    assert store.append_matches("example", []) == 0
    assert blobs.list() == []


def test_buckets_are_separate_and_listed(tmp_path):
    store = ResultStore(FileBlobStore(base_dir=str(tmp_path)))
    store.append_matches("alpha", [_m("AAA")])
    store.append_matches("beta", [_m("AAA"), _m("BBB")])

    buckets = store.list_buckets()
    assert [b.bucket for b in buckets] == ["alpha", "beta"]
    assert [m.code for m in store.list_matches()] == ["AAA", "BBB"]
    assert store.get_bucket("missing") is None


def test_malformed_entries_are_dropped(tmp_path, caplog):
    blobs = FileBlobStore(base_dir=str(tmp_path))
    blobs.write("results/example", [{"code": "AAA", "url": "u"}, {"nope": 1}])
    store = ResultStore(blobs)
    assert [m.code for m in store.get_bucket("example").matches] == ["AAA"]
    assert "Dropping malformed match" in caplog.text


def test_concurrent_appends_lose_nothing(tmp_path):
    store = ResultStore(FileBlobStore(base_dir=str(tmp_path)))
    start = threading.Barrier(8)

    def worker(n):
        start.wait()
        for i in range(10):
            store.append_matches("shared", [_m(f"W{n}C{i}"), _m("COMMON")])

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    codes = [m.code for m in store.get_bucket("shared").matches]
    assert len(codes) == 81
    assert len(set(codes)) == 81
