"""prot2py schema compiler and Python code generator."""

from .bitfield import CompiledBitField as CompiledBitField
from .bitfield import compile_bitfield as compile_bitfield
from .file import GenFile as GenFile
from .file import SinkWriteFailure as SinkWriteFailure
from .file import output as output
from .file import render_schema as render_schema
from .parser import parse as parse
from .sizes import SchemaSizeInfo as SchemaSizeInfo
from .sizes import SizeCalculator as SizeCalculator
from .sizes import SizeInfo as SizeInfo
from .sizes import SizeKind as SizeKind
from .sizes import StructSizeInfo as StructSizeInfo
from .sizes import calculate_sizes as calculate_sizes
from .structure import CompiledStructure as CompiledStructure
from .structure import compile_structure as compile_structure
from .types import AlternativeField as AlternativeField
from .types import AlternativeOptions as AlternativeOptions
from .types import Alternatives as Alternatives
from .types import BitContainer as BitContainer
from .types import ContextParam as ContextParam
from .types import DomainBuilder as DomainBuilder
from .types import EmbeddedBitfield as EmbeddedBitfield
from .types import Enumerated as Enumerated
from .types import EnumValue as EnumValue
from .types import FixedInt as FixedInt
from .types import Named as Named
from .types import Numeric as Numeric
from .types import RawBytes as RawBytes
from .types import Reserved as Reserved
from .types import Schema as Schema
from .types import Structure as Structure
from .validation import DuplicateDeclaration as DuplicateDeclaration
from .validation import DuplicateEnumSymbol as DuplicateEnumSymbol
from .validation import DuplicateEnumValue as DuplicateEnumValue
from .validation import DuplicateFieldName as DuplicateFieldName
from .validation import EnumValueOutOfRange as EnumValueOutOfRange
from .validation import InvalidName as InvalidName
from .validation import UnresolvedVariant as UnresolvedVariant
from .validation import ValidationError as ValidationError
from .validation import WidthMismatch as WidthMismatch
from .validation import WidthOverflow as WidthOverflow
