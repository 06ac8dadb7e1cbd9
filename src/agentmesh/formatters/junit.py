"""JUnit XML formatter for CI/CD integration."""

from __future__ import annotations

from typing import Iterable, Optional
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ..models.coordination import CoordinationResult
from ..models.finding import Severity

DEFAULT_FAIL_ON = (Severity.CRITICAL, Severity.HIGH)


def render_junit(
    result: CoordinationResult,
    fail_on: Optional[Iterable[Severity | str]] = None,
    project_name: str = "agentmesh",
) -> str:
    """Render a coordination result as JUnit XML.

    One testsuite per agent and one testcase per finding. Findings whose
    severity is in ``fail_on`` become failures; a failed agent becomes a
    single testcase with an ``<error>`` element.
    """
    fail_set = {Severity(s) for s in (fail_on if fail_on is not None else DEFAULT_FAIL_ON)}

    testsuites = ET.Element("testsuites")
    testsuites.set("name", project_name)
    testsuites.set("timestamp", result.started_at.strftime("%Y-%m-%dT%H:%M:%S"))

    total_tests = 0
    total_failures = 0
    total_errors = 0

    for report in result.reports:
        testsuite = ET.SubElement(testsuites, "testsuite")
        testsuite.set("name", report.agent_name)
        testsuite.set("time", f"{report.execution_time_ms / 1000:.3f}")

        if report.error is not None:
            total_tests += 1
            total_errors += 1
            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", f"{report.agent_name}: run")
            testcase.set("classname", report.agent_name)
            error = ET.SubElement(testcase, "error")
            error.set("message", report.error.message)
            error.set("type", report.error.kind.value)
            error.text = report.error.error_type or report.error.kind.value
            testsuite.set("tests", "1")
            testsuite.set("failures", "0")
            testsuite.set("errors", "1")
            testsuite.set("skipped", "0")
            continue

        suite_failures = 0
        for finding in report.findings:
            total_tests += 1

            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", f"{finding.id}: {finding.title}")
            testcase.set("classname", report.agent_name)
            testcase.set("file", finding.location.file)
            if finding.location.line is not None:
                testcase.set("line", str(finding.location.line))

            if finding.severity in fail_set:
                total_failures += 1
                suite_failures += 1

                failure = ET.SubElement(testcase, "failure")
                failure.set("message", f"[{finding.severity.value.upper()}] {finding.title}")
                failure.set("type", finding.severity.value)

                text_parts = [f"Severity: {finding.severity.value}", f"Location: {finding.location}"]
                if finding.rule_id:
                    text_parts.append(f"Rule: {finding.rule_id}")
                text_parts.append(f"\nDescription:\n{finding.message}")
                if finding.suggestion:
                    text_parts.append(f"\nRemediation:\n{finding.suggestion}")

                failure.text = "\n".join(text_parts)

        testsuite.set("tests", str(len(report.findings)))
        testsuite.set("failures", str(suite_failures))
        testsuite.set("errors", "0")
        testsuite.set("skipped", "0")

    testsuites.set("tests", str(total_tests))
    testsuites.set("failures", str(total_failures))
    testsuites.set("errors", str(total_errors))
    testsuites.set("time", f"{result.summary.total_execution_time / 1000:.3f}")

    # Pretty-print XML
    rough = ET.tostring(testsuites, encoding="unicode")
    dom = minidom.parseString(rough)
    return dom.toprettyxml(indent="  ")
