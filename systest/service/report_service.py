from schemas.result import RunReport


def format_report(report: RunReport) -> str:
    """
    사람이 읽는 실행 요약

    [books] http://localhost:8084/api
      ✓ book not found (1/1)
          ✓ status is 404
      ✗ top books retrieval (1/2)
      ...
    """
    lines = [f"[{report.suite}] {report.base_url}"]

    for outcome in report.outcomes:
        passed = len(outcome.checks) - len(outcome.failed_checks)
        mark = "✓" if outcome.passed else "✗"
        lines.append(f"  {mark} {outcome.name} ({passed}/{len(outcome.checks)})")

        for check in outcome.checks:
            line = f"      {'✓' if check.passed else '✗'} {check.name}"
            if check.detail:
                line += f": {check.detail}"
            lines.append(line)

        for probe in outcome.probes:
            ratios = ", ".join("n/a" if r is None else f"{r:.2f}" for r in probe.speedup_ratios) or "n/a"
            lines.append(
                f"      ~ cache probe {probe.path}: {probe.verdict}"
                f" (statuses {probe.statuses}, speedup ratios {ratios})"
            )

    verdict = report.verdict
    metrics = report.metrics
    lines.append(
        f"  checks: {metrics['total_checks'] - metrics['error_count']}/{metrics['total_checks']} passed"
        f", error rate {verdict.error_rate:.2%}"
        f", p95 {verdict.p95_latency_ms:.0f}ms"
        f", requests {metrics['total_requests']} ({metrics['failed_requests']} >= 400)"
    )
    for failure in verdict.failures:
        lines.append(f"  ! {failure}")
    lines.append(f"  RESULT: {'PASS' if verdict.passed else 'FAIL'}")

    return "\n".join(lines)
