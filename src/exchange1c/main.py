#!/usr/bin/env python3

from __future__ import annotations

from signal import SIGINT, signal

from dotenv import load_dotenv

from exchange1c.ui.cli import main, sigint_handler


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
