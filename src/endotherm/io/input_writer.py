import logging
import os
from typing import Optional

import pandas as pd

from endotherm.heat_balance.utils import flatten, safe_log_exception

logger = logging.getLogger(__name__)


class InputWriter:
    """Debug dump of the input bundle to a two-column csv (name, value).

    Usage:
        iw = InputWriter(output_dir)
        iw.write(inputs)

    Writing is best-effort: a failure is logged and `write` returns None, the
    solve carries on unaffected.
    """

    def __init__(self, out_dir, filename='endotherm_input.csv'):
        self.out_dir = out_dir
        self.filename = filename

    @property
    def path(self):
        return os.path.join(self.out_dir, self.filename)

    @staticmethod
    def to_frame(inputs) -> pd.DataFrame:
        flat = flatten(inputs)
        return pd.DataFrame({'name': list(flat.keys()), 'value': list(flat.values())})

    def write(self, inputs) -> Optional[str]:
        """Write `inputs` and return the file path, or None if the write failed."""
        try:
            os.makedirs(self.out_dir, exist_ok=True)
            self.to_frame(inputs).to_csv(self.path, index=False)
        except (OSError, ValueError) as exc:
            safe_log_exception('could not write input dump', exc, path=self.path)
            return None
        logger.debug('input bundle written to %s', self.path)
        return self.path
