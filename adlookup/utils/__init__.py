"""Small, side-effect free helpers used across the package.

Keep this package dependency-light to avoid circular imports.
"""

from .dn import dn_first_component_value, parent_dn  # noqa: F401
from .timeout import run_with_timeout  # noqa: F401
