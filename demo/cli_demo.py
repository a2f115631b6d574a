#!/usr/bin/env python3
"""
Interactive CLI demo for Fragrance Lab.

Walks through the guided conversation in the terminal: pick a mood, then a
top, middle and base note, and end with a recipe.
"""
import logging
import sys

from dotenv import load_dotenv

from fragrance_lab.app import FragranceLabApp
from fragrance_lab.config_loader import load_config_from_env
from fragrance_lab.conversation.phase import get_label, progress
from fragrance_lab.exceptions import FragranceLabError

# Load environment variables
load_dotenv()

REGENERATE_COMMAND = "/regen"


def print_banner():
    """Print welcome banner."""
    print("\n" + "=" * 60)
    print("  Fragrance Lab - Interactive CLI Demo")
    print("=" * 60)
    print("\nTell me the kind of scent you imagine and we will build it")
    print("note by note: top, middle, then base.")
    print(f"\nType '{REGENERATE_COMMAND} <top|middle|base> <request>' to rework one note.")
    print("Type 'quit' or 'exit' to end the session.")
    print("-" * 60 + "\n")


def print_response(response):
    """Print formatted response."""
    step, total, percentage = progress(response.phase)
    print(f"\n[{get_label(response.phase)} {step}/{total} - {percentage}%]")

    if response.message:
        print(f"Lab: {response.message['content']}")
        descriptions = response.message.get("option_descriptions", {})
        for option in response.message.get("options", []):
            description = descriptions.get(option)
            print(f"  * {option}" + (f": {description}" if description else ""))

    recipe = response.state.get("recipe")
    if recipe:
        print(f"Recipe: {recipe['name'] or '(unnamed)'}")
        print(f"  Top:    {', '.join(recipe['top_notes'])}")
        print(f"  Middle: {', '.join(recipe['middle_notes'])}")
        print(f"  Base:   {', '.join(recipe['base_notes'])}")

    if response.error:
        print(f"Note: {response.error}")

    if response.latency_ms is not None:
        print(f"Latency: {response.latency_ms}ms")

    print("-" * 60)


def setup_lab() -> FragranceLabApp:
    """Set up and initialize the fragrance lab."""
    print("Initializing Fragrance Lab...")
    config = load_config_from_env()
    lab_app = FragranceLabApp(config)
    lab_app.initialize()
    print("Ready!\n")
    return lab_app


def main():
    """Main CLI loop."""
    logging.basicConfig(level=logging.WARNING)
    print_banner()

    try:
        lab_app = setup_lab()
    except FragranceLabError as e:
        print(f"\nFailed to initialize: {e}")
        print("Please check your environment variables and configuration.")
        return 1

    session_id = lab_app.start_session().session_id

    while True:
        try:
            query = input("You: ").strip()

            if not query:
                continue

            if query.lower() in ['quit', 'exit', 'q']:
                print("\nThanks for visiting Fragrance Lab! Goodbye!\n")
                break

            try:
                if query.startswith(REGENERATE_COMMAND):
                    parts = query.split(maxsplit=2)
                    if len(parts) < 2:
                        print(f"Usage: {REGENERATE_COMMAND} <top|middle|base> <request>")
                        continue
                    instruction = parts[2] if len(parts) > 2 else "Suggest something different"
                    response = lab_app.regenerate_note(session_id, parts[1], instruction)
                else:
                    response = lab_app.chat(session_id, query)
                print_response(response)
            except (FragranceLabError, ValueError) as e:
                print(f"\nError: {e}")
                print("-" * 60)

        except KeyboardInterrupt:
            print("\n\nInterrupted. Goodbye!\n")
            break
        except EOFError:
            print("\n\nGoodbye!\n")
            break

    return 0


if __name__ == "__main__":
    sys.exit(main())
