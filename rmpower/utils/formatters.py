"""
Console formatting of RMPower results.

Renders the result dictionaries produced by ``RMPower.find_power`` and
``RMPower.find_sample_size`` as plain-text tables.
"""

from typing import Any, Dict, List, Optional

import numpy as np

__all__ = []


class _TableFormatter:
    """Plain-text table helpers."""

    @staticmethod
    def _format_value(value: Any, fmt: Optional[str] = None) -> str:
        if isinstance(value, float):
            if np.isnan(value):
                return "n/a"
            if fmt is not None:
                return format(value, fmt)
            if value != 0 and abs(value) < 0.001:
                return f"{value:.6f}"
            return f"{value:.4f}"
        return str(value)

    def _create_table(self, headers: List[str], rows: List[List[Any]], col_widths: Optional[List[int]] = None) -> str:
        if col_widths is None:
            col_widths = [max(len(str(h)), *(len(str(r[i])) for r in rows)) if rows else len(str(h)) for i, h in enumerate(headers)]

        lines = [" ".join(str(h).ljust(w) for h, w in zip(headers, col_widths))]
        lines.append(" ".join("-" * w for w in col_widths))
        for row in rows:
            lines.append(" ".join(str(c).ljust(w) for c, w in zip(row, col_widths)))
        return "\n".join(lines)


class _ResultFormatter(_TableFormatter):
    """Formats power and sample-size results in short or long form."""

    def _format_short_power(self, data: Dict) -> str:
        model = data["model"]
        res = data["results"]
        lines = [
            f"Design: {model['design']} ({', '.join(model['groups'])})",
            f"Sample size: {model['sample_size']} per group, alpha = {model['alpha']}",
            "",
        ]
        headers = ["Test", "Power", "Target", "Status"]
        status = "✓" if res["power"] >= model["target_power"] else "✗"
        rows = [["group:time", f"{self._format_value(res['power'], '.1f')}%", f"{model['target_power']:.0f}%", status]]
        lines.append(self._create_table(headers, rows))
        if res["n_failed"]:
            lines.append(f"\n{res['n_failed']} of {res['n_total']} fits failed and were excluded.")
        return "\n".join(lines)

    def _sample_size_rows(self, data: Dict) -> List[List[str]]:
        curve = data["results"]["power_curve"]
        frame = curve.to_frame()
        rows = []
        for rec in frame.itertuples(index=False):
            rows.append(
                [
                    str(rec.sample_size),
                    f"{self._format_value(rec.power * 100, '.1f')}%",
                    f"[{self._format_value(rec.ci_lower * 100, '.1f')}, {self._format_value(rec.ci_upper * 100, '.1f')}]",
                    f"{rec.n_significant}/{rec.n_total - rec.n_failed}",
                    str(rec.n_failed),
                ]
            )
        return rows

    def _format_short_sample_size(self, data: Dict) -> str:
        model = data["model"]
        res = data["results"]
        lines = [f"Design: {model['design']} ({', '.join(model['groups'])}), alpha = {model['alpha']}"]

        first = res["first_achieved"]
        if first > 0:
            lines.append(f"Required sample size: {first} per group for {model['target_power']:.0f}% power")
        else:
            to_size = model["sample_size_range"]["to_size"]
            lines.append(f"Target power of {model['target_power']:.0f}% not reached up to {to_size} per group")

        n_failed = sum(res["n_failed"].values())
        if n_failed:
            lines.append(f"{n_failed} fits failed and were excluded from the power estimates.")
        if res["cancelled"]:
            lines.append(f"Run cancelled: {res['n_units_completed']} of {res['n_units_planned']} units completed.")
        return "\n".join(lines)

    def _format_long_sample_size(self, data: Dict) -> str:
        headers = ["N/group", "Power", "95% CI", "Sig/Used", "Failed"]
        lines = [self._format_short_sample_size(data), "", self._create_table(headers, self._sample_size_rows(data))]

        reasons = data["results"].get("failure_reasons")
        if reasons:
            lines.append("\nFailure reasons:")
            for reason, count in sorted(reasons.items(), key=lambda kv: -kv[1]):
                lines.append(f"  {count:>5}  {reason}")
        return "\n".join(lines)


def _format_results(result_type: str, data: Dict, summary: str = "short") -> str:
    """Dispatch to the right formatter.

    Args:
        result_type: ``"power"`` or ``"sample_size"``.
        data: Result dictionary.
        summary: ``"short"`` or ``"long"``.
    """
    formatter = _ResultFormatter()
    if result_type == "power":
        return formatter._format_short_power(data)
    if result_type == "sample_size":
        if summary == "long":
            return formatter._format_long_sample_size(data)
        return formatter._format_short_sample_size(data)
    raise ValueError(f"Unknown result type: {result_type}")
