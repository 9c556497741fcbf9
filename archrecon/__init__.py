# CUI // SP-CTI
"""archrecon — static architecture recovery for compiled applications.

Recovers entities, services, controllers, endpoints and outbound REST calls
from a whole-program analysis snapshot without executing the program.
"""

__version__ = "0.4.0"
