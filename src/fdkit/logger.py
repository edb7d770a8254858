"""Contains the name for the logger of fdkit modules.

``fdkit`` uses a simple logging system based on the
`Logging <https://docs.python.org/3/library/logging.html>`__ standard library.
Most messages are emitted at ``DEBUG`` level and describe how a computation
was resolved (formula, step size, number of evaluations and workers).

By default nothing below ``WARNING`` is displayed.

Calling applications can configure the format and log level of the displayed messages
by `Configuring Logging <https://docs.python.org/3/howto/logging.html#configuring-logging>`__
for ``fdkit.logger.fdkit_logger``, e.g.::

    >>> import logging
    >>> logging.basicConfig(
    ...     level=logging.DEBUG,
    ...     format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    ... )
"""
import logging

logger_name = "fdkit"
fdkit_logger = logging.getLogger(logger_name)
