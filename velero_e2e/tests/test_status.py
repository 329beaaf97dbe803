import pytest

from velero_e2e.errors import MalformedOutputError, PhaseMismatchError
from velero_e2e.modules.velero.models import CapturedOutput, Phase
from velero_e2e.modules.velero.status import check_phase, decode_phase


def test_completed_matches():
    assert check_phase(b'{"status":{"phase":"Completed"}}', "Completed") == "Completed"


def test_mismatch_reports_both_phases():
    with pytest.raises(PhaseMismatchError) as exc:
        check_phase(b'{"status":{"phase":"Failed"}}', Phase.COMPLETED, kind="backup", name="b1")
    assert exc.value.observed == "Failed"
    assert exc.value.expected == "Completed"
    assert "Failed" in str(exc.value) and "Completed" in str(exc.value)


def test_accepts_captured_output():
    out = CapturedOutput(data=b'{"status":{"phase":"InProgress"}}', limit=16384)
    assert check_phase(out, Phase.IN_PROGRESS) == "InProgress"


def test_other_fields_are_ignored():
    doc = b'{"kind":"Backup","metadata":{"name":"b1"},"spec":{"ttl":"720h"},"status":{"phase":"Completed","errors":0}}'
    assert decode_phase(doc) == "Completed"


def test_missing_phase_is_a_mismatch_not_malformed():
    assert decode_phase(b'{}') == ""
    with pytest.raises(PhaseMismatchError):
        check_phase(b'{"status":{}}', "Completed")


@pytest.mark.parametrize("raw", [b"", b"not json", b'{"status":', b"[1, 2]", b'{"status":"Completed"}',
                                 b'{"status":{"phase":3}}', b"\xff\xfe"])
def test_undecodable_output_is_malformed(raw):
    with pytest.raises(MalformedOutputError):
        check_phase(raw, "Completed")
