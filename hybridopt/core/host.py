"""
Host handle passed to the quantum optimizer.

The host is the application embedding the optimizers. The optimizers only use
it to name and route their log output.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging


@dataclass
class HostHandle:
    """
    Minimal plugin handle.

    Attributes:
        name: Host name, used to derive a logger name when none is given
        logger: Logger to write optimizer messages to
    """
    name: str = 'host'
    logger: Optional[logging.Logger] = field(default=None, repr=False)

    def __post_init__(self):
        if self.logger is None:
            self.logger = logging.getLogger(f'hybridopt.host.{self.name}')
