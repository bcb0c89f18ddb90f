# repairdesk/settings/__init__.py

import os

deployment_mode = os.getenv('DEPLOYMENT_MODE', 'local')

if deployment_mode == 'cloud':
    from .cloud import *
else:
    from .local import *
