from payload import decode


def test_decode_outcomes_are_counted(sample_value):
    strict = sample_value("payload_decode_total", {"outcome": "strict"})
    repaired = sample_value("payload_decode_total", {"outcome": "repaired"})
    failed = sample_value("payload_decode_total", {"outcome": "failed"})
    truncations = sample_value("payload_repairs_total", {"strategy": "truncate"})

    decode("[]")
    decode('{"a":1')
    decode("nope")

    assert sample_value("payload_decode_total", {"outcome": "strict"}) - strict == 1
    assert sample_value("payload_decode_total", {"outcome": "repaired"}) - repaired == 1
    assert sample_value("payload_decode_total", {"outcome": "failed"}) - failed == 1
    assert sample_value("payload_repairs_total", {"strategy": "truncate"}) - truncations == 1
