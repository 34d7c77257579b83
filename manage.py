#!/usr/bin/env python3
"""
Management script for the Auralis calls backend
Usage: python manage.py <command> [args...]
"""
import sys
import importlib
from pathlib import Path

COMMANDS_DIR = Path(__file__).parent / "management" / "commands"


def list_commands():
    """Print every command with the first line of its run() docstring."""
    print("Available commands:")
    for file in sorted(COMMANDS_DIR.glob("*.py")):
        if file.name == "__init__.py":
            continue
        summary = ""
        try:
            module = importlib.import_module(f"management.commands.{file.stem}")
            doc = getattr(module, "run", None).__doc__ or ""
            summary = doc.strip().splitlines()[0] if doc.strip() else ""
        except (ImportError, AttributeError):
            pass
        print(f"  {file.stem:<12} {summary}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python manage.py <command> [args...]")
        list_commands()
        return

    command = sys.argv[1]

    try:
        module = importlib.import_module(f"management.commands.{command}")
    except ModuleNotFoundError:
        print(f"Command '{command}' not found")
        list_commands()
        return

    if hasattr(module, "run"):
        module.run()
    else:
        print(f"Command '{command}' does not have a run() function")


if __name__ == "__main__":
    main()
