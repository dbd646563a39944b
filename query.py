#!/usr/bin/env python3
"""Ad hoc meal analysis runner for Doctor Food.

Analyze one photo without starting the interactive app.

Usage:
    python query.py images/salad.jpg
    python query.py --profile 25,male,70 images/salad.jpg  # Profile for this run only
    python query.py --debug images/salad.jpg  # Show full JSON reply

Features:
- Uses the stored profile unless --profile is given
- Renders the same result card as the interactive app
- Debug mode to display the reply with its schema field names
"""

import asyncio
import sys

from pydantic import ValidationError

from doctor_food.controller.state_machine import AnalysisController, AppState
from doctor_food.models.models import UserProfile
from doctor_food.services.image_acquisition import AcquisitionIntent
from doctor_food.services.inference import GeminiInferenceClient
from doctor_food.services.profile_store import InMemoryKeyValueStore, ProfileStore, open_profile_store
from doctor_food.ui.console import console, render_error, render_result
from doctor_food.utils.config import config
from doctor_food.utils.logger import logger


def parse_profile(value: str) -> UserProfile:
    """Parse "AGE,GENDER,WEIGHT" (e.g. "25,male,70")."""
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 3:
        raise ValueError("--profile must be AGE,GENDER,WEIGHT (e.g. 25,male,70)")
    return UserProfile.from_form(*parts)


def run_query(image_path: str, debug: bool = False, profile: UserProfile = None) -> None:
    """Analyze a single image and print the result.

    Args:
        image_path: Path to the meal photo.
        debug: If True, display the full JSON reply.
        profile: Profile for this run; the stored profile is used when None.
    """
    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]✗ Configuration error: {e}[/red]")
        sys.exit(1)

    profile_store = ProfileStore(InMemoryKeyValueStore()) if profile else open_profile_store()

    try:
        controller = AnalysisController(profile_store, GeminiInferenceClient())
        if profile:
            controller.submit_profile(profile)

        if controller.state is AppState.NO_PROFILE:
            console.print("[red]✗ No stored profile. Run doctor-food once or pass --profile AGE,GENDER,WEIGHT[/red]")
            sys.exit(1)

        logger.info(f"Analyzing: {image_path}")
        with console.status("جاري تحليل الوجبة..."):
            asyncio.run(controller.capture(image_path, AcquisitionIntent.GALLERY))

        snapshot = controller.snapshot()
        console.print()

        if snapshot.result is None:
            console.print(render_error(snapshot.error_message or "No result"))
            sys.exit(1)

        if debug:
            console.print("[bold cyan]Debug Mode: Full Response[/bold cyan]")
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print_json(data=snapshot.result.to_wire())
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print()

        console.print(render_result(snapshot.result))

    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    finally:
        profile_store.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python query.py [--debug] [--profile AGE,GENDER,WEIGHT] IMAGE")
        print("")
        print("Examples:")
        print("  python query.py images/salad.jpg")
        print("  python query.py --profile 25,male,70 images/salad.jpg")
        print("  python query.py --debug images/salad.jpg")
        sys.exit(1)

    debug_mode = False
    profile_arg = None
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        if sys.argv[argv_start] == "--debug":
            debug_mode = True
            argv_start += 1
        elif sys.argv[argv_start] == "--profile":
            argv_start += 1
            if argv_start >= len(sys.argv):
                print("Error: --profile flag requires AGE,GENDER,WEIGHT")
                sys.exit(1)
            profile_arg = sys.argv[argv_start]
            argv_start += 1
        else:
            print(f"Unknown flag: {sys.argv[argv_start]}")
            sys.exit(1)

    if argv_start >= len(sys.argv):
        print("Error: No image provided")
        print("Usage: python query.py [--debug] [--profile AGE,GENDER,WEIGHT] IMAGE")
        sys.exit(1)

    try:
        cli_profile = parse_profile(profile_arg) if profile_arg else None
    except (ValueError, ValidationError) as e:
        print(f"Error: invalid --profile: {e}")
        sys.exit(1)

    run_query(sys.argv[argv_start], debug=debug_mode, profile=cli_profile)
