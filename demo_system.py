"""
End-to-end walkthrough of the risk engine.

This script:
1. Loads configuration and logging
2. Trains a classifier on a fresh synthetic set
3. Classifies a low-risk and a high-risk reading
4. Shows the verdicts and recommendations

Run with: uv run python demo_system.py
"""

import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.intake.form import VitalsValidationError, parse_vitals_form
from cardiorisk.config import get_config, print_config_summary
from cardiorisk.domain.models import RiskIndicator, RiskVerdict
from cardiorisk.logging_setup import configure_logging
from cardiorisk.services.engine import RiskEngine

console = Console()

SCENARIOS: dict[str, dict[str, str]] = {
    "low_risk": {
        "age": "30",
        "heartRate": "70",
        "systolic": "115",
        "diastolic": "75",
        "cholesterol": "180",
    },
    "high_risk": {
        "age": "65",
        "heartRate": "110",
        "systolic": "140",
        "diastolic": "92",
        "cholesterol": "260",
    },
    "missing_fields": {"age": "45", "heartRate": "", "systolic": "120"},
}

_INDICATOR_STYLES = {
    RiskIndicator.NORMAL: "green",
    RiskIndicator.WARNING: "yellow",
    RiskIndicator.DANGER: "red",
}


def render_verdict(name: str, verdict: RiskVerdict, tips: list[str]) -> None:
    style = _INDICATOR_STYLES[verdict.indicator]
    headline = f"{verdict.tier.value} ({verdict.confidence:.1f}% confidence)"
    console.print(Panel(headline, title=name, style=style))

    table = Table(title="Risk Distribution")
    table.add_column("Tier", style="cyan")
    table.add_column("Probability", style="magenta")
    table.add_row("Low Risk", f"{verdict.distribution.low:.1f}%")
    table.add_row("Medium Risk", f"{verdict.distribution.medium:.1f}%")
    table.add_row("High Risk", f"{verdict.distribution.high:.1f}%")
    console.print(table)

    for tip in tips:
        console.print(f"  • {tip}")


async def main() -> None:
    config = get_config()
    configure_logging(config.logging)
    print_config_summary()

    console.print(Panel("Training risk classifier", style="blue"))

    async with RiskEngine(config) as engine:
        await engine.initialize()
        if not await engine.wait_until_ready(timeout=60):
            console.print(f"❌ Engine not ready: {engine.last_error}", style="red")
            return

        report = engine.last_training_report
        if report is not None:
            console.print(
                f"✅ Trained {report.epochs} epochs in {report.duration_seconds:.2f}s "
                f"(val accuracy {report.final.val_accuracy or 0:.1%})",
                style="green",
            )

        for name, form in SCENARIOS.items():
            try:
                vitals = parse_vitals_form(form)
            except VitalsValidationError as e:
                console.print(Panel(str(e), title=name, style="yellow"))
                continue

            verdict = await engine.infer(vitals)
            if verdict is None:
                console.print(f"❌ No verdict for {name}", style="red")
                continue
            render_verdict(name, verdict, engine.recommendations_for(verdict.tier))


if __name__ == "__main__":
    asyncio.run(main())
