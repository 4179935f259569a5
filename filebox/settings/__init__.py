"""Main settings file for the FileBox project.

Settings are split into components under ``settings/components``
and assembled here with ``django-split-settings``.
"""

from split_settings.tools import include

include(
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/workflow.py',
)
