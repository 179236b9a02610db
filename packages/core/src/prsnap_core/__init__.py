"""prsnap core: fetch, normalize and render GitHub pull requests offline."""

import logging

# Library code stays silent unless the application configures logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())
