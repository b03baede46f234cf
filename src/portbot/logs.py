"""Process-wide logging setup."""

import logging


def configure_logging(debug: bool) -> None:
    """Configure root logging once, at process entry.

    Modules log through logging.getLogger(__name__); this only decides level
    and format.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s",
    )
