"""Terminal front end for Doctor Food.

Renders the controller's ScreenState with rich and forwards user intents
(submit profile, capture, gallery pick, reset, edit data) back to it.

Run with: doctor-food
"""

import asyncio
import sys
from typing import Optional

from pydantic import ValidationError
from rich.console import Console, Group
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from doctor_food.controller.state_machine import AnalysisController, AppState, ScreenState
from doctor_food.models.models import AnalysisResult, UserProfile
from doctor_food.services.image_acquisition import AcquisitionIntent
from doctor_food.services.inference import GeminiInferenceClient
from doctor_food.services.profile_store import open_profile_store
from doctor_food.utils.config import config
from doctor_food.utils.logger import logger

console = Console()

GENDER_CHOICES = {"1": "male", "2": "female"}


def render_result(result: AnalysisResult) -> Panel:
    """Build the result card for one analysis."""
    badge = Text(" صحي ", style="bold white on green") if result.is_healthy else Text(
        " غير صحي ", style="bold white on dark_orange"
    )
    header = Text.assemble(
        (result.food_name, "bold green"), "  ", badge, "  ", (f"تقييم: {result.rating:g}/10", "bold blue")
    )

    facts = Table.grid(padding=(0, 2))
    facts.add_column(style="green")
    facts.add_column()
    facts.add_row("سعر حراري", result.calories)
    facts.add_row("الوزن التقديري", result.estimated_weight)
    facts.add_row("التأثير الصحي", result.healthiness)

    parts = [header, Text(""), facts, Text(""), Text("التحليل الشامل", style="bold green"), Text(result.analysis)]

    if result.healthy_alternatives:
        parts.append(Text(""))
        parts.append(Text("بدائل صحية", style="bold green"))
        parts.extend(Text(f"• {alternative}") for alternative in result.healthy_alternatives)

    return Panel(Group(*parts), title="Doctor Food", border_style="green")


def render_error(message: str) -> Panel:
    return Panel(Text(message), title="عذراً", border_style="red")


def prompt_profile() -> UserProfile:
    """Ask for age, gender and weight until the form is valid."""
    console.print(
        Panel(
            "لنبدأ رحلتك نحو صحة أفضل. أدخل بياناتك الأساسية لتقديم تحليل دقيق.",
            title="Doctor Food",
            border_style="green",
        )
    )
    while True:
        age = Prompt.ask("العمر (1-120)", console=console)
        gender_choice = Prompt.ask("النوع: 1) ذكر  2) أنثى", choices=list(GENDER_CHOICES), console=console)
        weight = Prompt.ask("الوزن بالكجم (20-300)", console=console)
        try:
            return UserProfile.from_form(age, GENDER_CHOICES[gender_choice], weight)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            console.print(f"[red]✗ بيانات غير صالحة: {fields}[/red]")


async def _capture(controller: AnalysisController, intent: AcquisitionIntent) -> None:
    path: Optional[str] = Prompt.ask("مسار الصورة (اتركه فارغاً للإلغاء)", default="", console=console)
    with console.status("جاري تحليل الوجبة..."):
        await controller.capture(path or None, intent)


def _render(snapshot: ScreenState) -> None:
    if snapshot.state is AppState.RESULT_READY and snapshot.result:
        console.print(render_result(snapshot.result))
    elif snapshot.error_message:
        console.print(render_error(snapshot.error_message))


async def run(controller: AnalysisController) -> None:
    """Main interaction loop; returns when the user quits."""
    while True:
        snapshot = controller.snapshot()

        if snapshot.state is AppState.NO_PROFILE:
            controller.submit_profile(prompt_profile())
            continue

        _render(snapshot)

        if snapshot.state is AppState.AWAITING_CAPTURE:
            choice = Prompt.ask(
                "c) التقط صورة  g) اختر من المعرض  e) تعديل البيانات  q) خروج",
                choices=["c", "g", "e", "q"],
                console=console,
            )
            if choice == "c":
                await _capture(controller, AcquisitionIntent.CAMERA)
            elif choice == "g":
                await _capture(controller, AcquisitionIntent.GALLERY)
            elif choice == "e":
                controller.edit_profile()
            else:
                return
        else:
            choice = Prompt.ask(
                "n) تحليل وجبة أخرى  e) تعديل البيانات  q) خروج",
                choices=["n", "e", "q"],
                console=console,
            )
            if choice == "n":
                controller.reset()
            elif choice == "e":
                controller.edit_profile()
            else:
                return


def main() -> None:
    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]✗ Configuration error: {e}[/red]")
        sys.exit(1)

    profile_store = open_profile_store()
    controller = AnalysisController(profile_store, GeminiInferenceClient())
    try:
        asyncio.run(run(controller))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    finally:
        profile_store.close()


if __name__ == "__main__":
    main()
