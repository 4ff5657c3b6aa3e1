import json
import struct
import sys
import threading
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(ROOT / "tests"))

from stubs.memory_subject import MemorySubject
from xofvectors.cshake import CShake, handler_for
from xofvectors.errors import InvalidTestVector, MalformedInput, SubjectFailure
from xofvectors.mct import MCT_ROUNDS

DIGEST = b"\xde\xad\xbe\xef"


def _u32(b):
    return struct.unpack("<I", b)[0]


def _aft_group(tg_id, tc_ids):
    return {
        "tgId": tg_id,
        "testType": "AFT",
        "tests": [
            {"tcId": tc, "msg": f"{tc:02x}", "len": 8, "functionName": "", "customization": "", "outLen": 32}
            for tc in tc_ids
        ],
    }


def _mct_step(msg, lo, hi, cur, inc, cust):
    # Emit a message as long as the requested output, then step the length down to the floor and wrap.
    n = _u32(cur)
    nxt = n - 8 if n - 8 >= _u32(lo) else _u32(hi)
    return [bytes(i % 256 for i in range(n // 8)), struct.pack("<I", nxt), b""]


class AftTests(unittest.TestCase):
    def test_single_case_args_and_response(self):
        vs = {"testGroups": [{"tgId": 1, "testType": "AFT", "tests": [
            {"tcId": 5, "msg": "00", "len": 8, "functionName": "", "customization": "", "outLen": 32},
        ]}]}
        with MemorySubject({"cSHAKE-128": lambda *a: [DIGEST]}) as m:
            out = CShake("cSHAKE-128").process(json.dumps(vs), m)
        self.assertEqual(m.calls, [("cSHAKE-128", 1, (b"\x00", b"\x04\x00\x00\x00", b"", b""))])
        self.assertEqual(out, [{"tgId": 1, "tests": [{"tcId": 5, "md": "deadbeef", "outLen": 32}]}])

    def test_reversed_completion_keeps_input_order(self):
        vs = json.dumps({"testGroups": [_aft_group(1, [1, 2, 3]), _aft_group(2, [4, 5, 6])]})
        with MemorySubject({"cSHAKE-256": lambda msg, *rest: [msg * 2]}, reverse=True) as m:
            out = CShake("cSHAKE-256").process(vs, m)

        # The subject really did see each group's cases newest-first.
        self.assertEqual([c[2][0] for c in m.calls], [b"\x03", b"\x02", b"\x01", b"\x06", b"\x05", b"\x04"])
        self.assertEqual([g["tgId"] for g in out], [1, 2])
        self.assertEqual([t["tcId"] for t in out[0]["tests"]], [1, 2, 3])
        self.assertEqual([t["tcId"] for t in out[1]["tests"]], [4, 5, 6])
        self.assertEqual(out[1]["tests"][0]["md"], "0404")

    def test_concurrent_completion_keeps_input_order(self):
        gate = threading.Barrier(4, timeout=5)

        def slow(msg, *rest):
            # All four calls must be in flight together before any completes.
            gate.wait()
            return [msg]

        vs = json.dumps({"testGroups": [_aft_group(9, [10, 11, 12, 13])]})
        with MemorySubject({"cSHAKE-128": slow}, workers=4) as m:
            out = CShake("cSHAKE-128").process(vs, m)
        self.assertEqual([t["tcId"] for t in out[0]["tests"]], [10, 11, 12, 13])

    def test_callback_failure_aborts_at_next_checkpoint(self):
        vs = json.dumps({"testGroups": [_aft_group(1, [1, 2])]})
        with MemorySubject({"cSHAKE-128": lambda *a: []}) as m:
            with self.assertRaises(SubjectFailure) as cm:
                CShake("cSHAKE-128").process(vs, m)
        self.assertIn("expected 1 results", str(cm.exception))

    def test_failed_group_stops_later_groups(self):
        def broken(*args):
            raise SubjectFailure("subject crashed")

        mct = {"tgId": 2, "testType": "MCT", "minOutLen": 128, "maxOutLen": 256, "outLenIncrement": 8,
               "tests": [{"tcId": 9, "msg": "00", "len": 8}]}
        vs = json.dumps({"testGroups": [_aft_group(1, [1, 2]), mct, _aft_group(3, [3])]})
        with MemorySubject({"cSHAKE-128": broken, "cSHAKE-128/MCT": _mct_step}) as m:
            with self.assertRaises(SubjectFailure) as cm:
                CShake("cSHAKE-128").process(vs, m)
        self.assertIn("subject crashed", str(cm.exception))
        self.assertEqual(sorted(c[2][0] for c in m.calls), [b"\x01", b"\x02"])

    def test_transactor_reusable_after_failed_set(self):
        healthy = {"ok": False}

        def aft(msg, *rest):
            if not healthy["ok"]:
                raise SubjectFailure("left over from the first set")
            return [DIGEST]

        mct = {"tgId": 2, "testType": "MCT", "minOutLen": 128, "maxOutLen": 256, "outLenIncrement": 8,
               "tests": [{"tcId": 9, "msg": "00", "len": 8}]}
        with MemorySubject({"cSHAKE-128": aft, "cSHAKE-128/MCT": lambda *a: []}, reverse=True) as m:
            with self.assertRaises(SubjectFailure):
                CShake("cSHAKE-128").process(json.dumps({"testGroups": [_aft_group(1, [1]), mct]}), m)
            healthy["ok"] = True
            out = CShake("cSHAKE-128").process(json.dumps({"testGroups": [_aft_group(5, [6])]}), m)
        self.assertEqual(out, [{"tgId": 5, "tests": [{"tcId": 6, "md": "deadbeef", "outLen": 32}]}])

    def test_invalid_case_rejected_before_any_call(self):
        bad = _aft_group(2, [1])
        bad["tests"][0]["hexCustomization"] = "61"
        bad["tests"][0]["customization"] = "a"
        vs = json.dumps({"testGroups": [_aft_group(1, [1, 2]), bad]})
        with MemorySubject({"cSHAKE-128": lambda *a: [DIGEST]}) as m:
            with self.assertRaises(InvalidTestVector):
                CShake("cSHAKE-128").process(vs, m)
        self.assertEqual(m.calls, [])

    def test_fractional_out_len_rejected_before_dispatch(self):
        g = _aft_group(1, [1])
        g["tests"][0]["outLen"] = 20
        with MemorySubject({"cSHAKE-128": lambda *a: [DIGEST]}) as m:
            with self.assertRaises(InvalidTestVector):
                CShake("cSHAKE-128").process(json.dumps({"testGroups": [g]}), m)
        self.assertEqual(m.calls, [])


class MctTests(unittest.TestCase):
    def _mct_set(self, tc_ids=(1,)):
        return {"testGroups": [{
            "tgId": 3, "testType": "MCT", "minOutLen": 128, "maxOutLen": 256, "outLenIncrement": 8,
            "tests": [{"tcId": tc, "msg": "0011", "len": 16} for tc in tc_ids],
        }]}

    def test_chain_of_one_hundred_rounds(self):
        with MemorySubject({"cSHAKE-128/MCT": _mct_step}) as m:
            out = CShake("cSHAKE-128").process(json.dumps(self._mct_set()), m)

        results = out[0]["tests"][0]["resultsArray"]
        self.assertEqual(len(results), MCT_ROUNDS)

        expected, cur = [], 256
        for _ in range(MCT_ROUNDS):
            expected.append(cur)
            cur = cur - 8 if cur - 8 >= 128 else 256
        self.assertEqual([r["outLen"] for r in results], expected)
        self.assertEqual(results[-1]["outLen"], expected[99])
        self.assertEqual(results[0]["md"], bytes(range(32)).hex())

        op, n, first = m.calls[0]
        self.assertEqual((op, n), ("cSHAKE-128/MCT", 3))
        self.assertEqual(first, (b"\x00\x11", struct.pack("<I", 128), struct.pack("<I", 256),
                                 struct.pack("<I", 256), struct.pack("<I", 8), b""))
        # Round two is fed round one's outputs.
        self.assertEqual(m.calls[1][2][0], bytes(range(32)))
        self.assertEqual(_u32(m.calls[1][2][3]), 248)

    def test_each_case_gets_its_own_chain(self):
        with MemorySubject({"cSHAKE-256/MCT": _mct_step}) as m:
            out = CShake("cSHAKE-256").process(json.dumps(self._mct_set((1, 2))), m)
        self.assertEqual([t["tcId"] for t in out[0]["tests"]], [1, 2])
        self.assertEqual(out[0]["tests"][0], out[0]["tests"][1] | {"tcId": 1})
        self.assertEqual(len(m.calls), 2 * MCT_ROUNDS)

    def test_mid_chain_failure_aborts_the_set(self):
        count = {"n": 0}

        def flaky(*args):
            count["n"] += 1
            if count["n"] == 50:
                raise SubjectFailure("subject crashed")
            return _mct_step(*args)

        with MemorySubject({"cSHAKE-128/MCT": flaky}) as m:
            with self.assertRaises(SubjectFailure) as cm:
                CShake("cSHAKE-128").process(json.dumps(self._mct_set((1, 2))), m)
        self.assertIn("cSHAKE-128 mct operation failed", str(cm.exception))
        self.assertEqual(len(m.calls), 50)

    def test_bad_length_encoding_is_a_subject_failure(self):
        with MemorySubject({"cSHAKE-128/MCT": lambda msg, *a: [msg, b"\x01", b""]}) as m:
            with self.assertRaises(SubjectFailure):
                CShake("cSHAKE-128").process(json.dumps(self._mct_set()), m)


class RegistryTests(unittest.TestCase):
    def test_lookup_is_case_insensitive(self):
        self.assertEqual(handler_for("CSHAKE-128").algo, "cSHAKE-128")
        self.assertEqual(handler_for("cshake-256").algo, "cSHAKE-256")

    def test_unknown_algorithm(self):
        with self.assertRaises(MalformedInput):
            handler_for("SHA3-256")


if __name__ == "__main__":
    unittest.main()
