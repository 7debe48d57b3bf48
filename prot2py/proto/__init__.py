"""Runtime support for generated prot2py codecs."""

from .serialization import BitEnum as BitEnum
from .serialization import BitField as BitField
from .serialization import SerializationError as SerializationError
from .serialization import Struct as Struct
from .serialization import TruncatedInput as TruncatedInput
from .serialization import UndeclaredDiscriminant as UndeclaredDiscriminant
from .serialization import UnresolvedVariant as UnresolvedVariant
from .serialization import check_length as check_length
from .serialization import check_range as check_range
from .serialization import check_variant as check_variant
from .serialization import context_value as context_value
from .serialization import read_bytes as read_bytes
from .serialization import select_variant as select_variant
