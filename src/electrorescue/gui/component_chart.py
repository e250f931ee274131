# -*- coding: utf-8 -*-
"""Horizontal bar chart of detected component categories."""

from __future__ import annotations

from PyQt6.QtCore import QRectF, QSize, Qt
from PyQt6.QtGui import QColor, QPainter, QPaintEvent
from PyQt6.QtWidgets import QWidget

from electrorescue.models.analysis_result import ComponentStat


BAR_COLORS = ("#60a5fa", "#2dd4bf", "#a78bfa", "#f472b6", "#fbbf24", "#34d399")


class ComponentChart(QWidget):
    """Paint one labelled bar per component category."""

    ROW_HEIGHT = 28
    LABEL_WIDTH = 110
    PADDING = 12

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("componentChart")
        self._stats: list[ComponentStat] = []
        self.setMinimumHeight(self.sizeHint().height())

    def set_stats(self, stats: list[ComponentStat]) -> None:
        self._stats = list(stats)
        self.setMinimumHeight(self.sizeHint().height())
        self.updateGeometry()
        self.update()

    def stats(self) -> list[ComponentStat]:
        return list(self._stats)

    def sizeHint(self) -> QSize:
        rows = max(1, len(self._stats))
        return QSize(320, 2 * self.PADDING + 24 + rows * self.ROW_HEIGHT)

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor("#1e293b"))

        painter.setPen(QColor("#e2e8f0"))
        title_rect = QRectF(self.PADDING, self.PADDING, self.width() - 2 * self.PADDING, 20)
        painter.drawText(title_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, "Component Breakdown")

        top = self.PADDING + 24
        if not self._stats:
            painter.setPen(QColor("#64748b"))
            painter.drawText(
                QRectF(self.PADDING, top, self.width() - 2 * self.PADDING, self.ROW_HEIGHT),
                Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
                "No components counted",
            )
            painter.end()
            return

        max_count = max(stat.count for stat in self._stats) or 1
        bar_left = self.PADDING + self.LABEL_WIDTH
        # Leave room for the count text on the right.
        bar_span = max(10.0, self.width() - bar_left - self.PADDING - 36)
        for index, stat in enumerate(self._stats):
            y = top + index * self.ROW_HEIGHT
            painter.setPen(QColor("#94a3b8"))
            painter.drawText(
                QRectF(self.PADDING, y, self.LABEL_WIDTH - 8, self.ROW_HEIGHT),
                Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter,
                stat.category,
            )
            width = bar_span * stat.count / max_count
            bar = QRectF(bar_left, y + 6, max(width, 2.0), self.ROW_HEIGHT - 12)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QColor(BAR_COLORS[index % len(BAR_COLORS)]))
            painter.drawRoundedRect(bar, 3, 3)
            painter.setPen(QColor("#e2e8f0"))
            painter.drawText(
                QRectF(bar.right() + 6, y, 36, self.ROW_HEIGHT),
                Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
                str(stat.count),
            )
        painter.end()
