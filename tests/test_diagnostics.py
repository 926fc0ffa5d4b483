from __future__ import annotations

import logging

from safebind.diagnostics import DiagnosticLog, Severity


def test_diagnostics_are_collected_and_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="safebind")
    log = DiagnosticLog()
    log.warn("QPoint::data", "assumed static")
    log.skip("QFoo::bar", "owning class is not registered")
    assert not log.has_fatal
    log.fatal("qt_core", "boom")

    assert log.has_fatal
    assert [d.entity for d in log.of(Severity.SKIP)] == ["QFoo::bar"]
    assert log.report().splitlines() == [
        "[warning] QPoint::data: assumed static",
        "[skip] QFoo::bar: owning class is not registered",
        "[fatal] qt_core: boom",
    ]
    levels = [r.levelno for r in caplog.records if r.name == "safebind.diagnostics"]
    assert levels == [logging.WARNING, logging.DEBUG, logging.ERROR]
