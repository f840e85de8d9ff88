"""gworkspace-admin.

Administer Google Workspace (Directory, Drive, Calendar, Gmail, Reports) from the
command line, one record at a time or in bulk from CSV files and folder trees.
"""

from gworkspace_admin.__version__ import __version__

__all__ = ["__version__"]
