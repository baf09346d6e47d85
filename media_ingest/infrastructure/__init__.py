"""メディア取り込み境界文脈のインフラストラクチャ層."""

from .azure_blob import *
from .in_memory import *
from .local import *
