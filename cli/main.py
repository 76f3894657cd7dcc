#!/usr/bin/env python3
"""manualqa — on-device question answering from the command line.

Usage:

    manualqa check --model-path ~/models/car_manual_model
    manualqa ask "How do I check the oil level?"
    manualqa chat --backend llama_cpp --model-path ~/models/car_manual.gguf
"""

import click

from cli.qa import ask, chat, check


@click.group()
def main():
    """Ask a locally loaded language model about your manual."""


main.add_command(check)
main.add_command(ask)
main.add_command(chat)


if __name__ == "__main__":
    main()
