import json
import xml.etree.ElementTree as ET
from pathlib import Path


def write_junit(path: Path, suite_name: str, cases: list[dict]) -> None:
    """One <testcase> per compared ACVP test, classed by test group.

    Cases come from compare_responses(); anything not passed/failed is ignored.
    """
    ran = [c for c in cases if c.get("status") in ("passed", "failed")]
    failed = [c for c in ran if c["status"] == "failed"]
    suite = ET.Element("testsuite", name=suite_name, tests=str(len(ran)), failures=str(len(failed)), errors="0")
    for c in ran:
        group = c["id"].partition("/")[0]
        el = ET.SubElement(suite, "testcase", classname=f"{suite_name}.{group}", name=c["id"])
        if c["status"] == "failed":
            failure = ET.SubElement(el, "failure", type="mismatch", message=c.get("error") or "mismatch")
            failure.text = json.dumps({"expected": c.get("expected"), "actual": c.get("actual")}, sort_keys=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    ET.ElementTree(suite).write(path, encoding="utf-8", xml_declaration=True)
