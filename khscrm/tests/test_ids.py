import re
from datetime import datetime

from khscrm.ids import new_id, utc_now_iso


def test_new_id_shape():
    ident = new_id("cust")
    m = re.fullmatch(r"cust-(\d{13})-([0-9a-z]{9})", ident)
    assert m, ident


def test_new_ids_do_not_collide_in_a_burst():
    # Many ids share a millisecond; the random suffix keeps them apart
    ids = [new_id("job") for _ in range(1000)]
    assert len(set(ids)) == len(ids)


def test_utc_now_iso():
    stamp = utc_now_iso()
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", stamp)
    parsed = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    assert parsed.utcoffset().total_seconds() == 0
