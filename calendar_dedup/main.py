#!/usr/bin/env python3
"""Calendar Dedup — find and remove duplicate calendar events by CORE SYSTEMS."""

import logging

from .config import Config


def setup_logging(config: Config):
    level = getattr(logging, str(config.get('log_level', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def main():
    config = Config()
    setup_logging(config)

    from .app import CalendarDedupApp
    app = CalendarDedupApp(config)
    app.mainloop()


if __name__ == "__main__":
    main()
