# -*- coding: utf-8 -*-
"""Markdown report viewer."""

from __future__ import annotations

from PyQt6.QtWidgets import QTextBrowser, QWidget


class ReportWidget(QTextBrowser):
    """Render the analysis report as Markdown."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("reportView")
        self.setOpenExternalLinks(True)
        self._content = ""

    def set_report(self, content: str) -> None:
        self._content = content
        self.setMarkdown(content)
        self.verticalScrollBar().setValue(0)

    def report(self) -> str:
        return self._content
