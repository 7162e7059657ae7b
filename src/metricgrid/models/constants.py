# ==============================================================================
# Metric Column Configuration
# ==============================================================================

# Headers shown in the grid, paired with the Metric attribute they edit
HEADER_NAME = "Name"
HEADER_DATA_TYPE = "Data Type"
HEADER_DATA_SIZE = "Data Size"
HEADER_DESCRIPTION = "Description"
HEADER_COLUMN_NAME = "Column Name"
HEADER_BUSINESS_DIMENSION = "Business Dimension"

FIELD_NAME = "name"
FIELD_DATA_TYPE = "data_type"
FIELD_DATA_SIZE = "size"
FIELD_DESCRIPTION = "description"
FIELD_COLUMN_NAME = "column_name"
FIELD_BUSINESS_DIMENSION = "cost_object_id"

# Fields the grid is allowed to write through an UpdateEntity command
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        FIELD_NAME,
        FIELD_DATA_TYPE,
        FIELD_DATA_SIZE,
        FIELD_DESCRIPTION,
        FIELD_COLUMN_NAME,
        FIELD_BUSINESS_DIMENSION,
    }
)

# Fields stored as integers (grid editors hand back strings)
INTEGER_FIELDS: frozenset[str] = frozenset({FIELD_DATA_SIZE, FIELD_BUSINESS_DIMENSION})

SELECTION_COLUMN_WIDTH = 32


# ==============================================================================
# Data Type Configuration
# ==============================================================================

# Stored key -> human-readable label
DATA_TYPE_NAMES: dict[str, str] = {
    "String": "Text",
    "Integer": "Whole Number",
    "Decimal": "Decimal Number",
    "Currency": "Currency",
    "Percentage": "Percentage",
    "Date": "Date",
    "Boolean": "Yes/No",
}

# Editor options in display order
DATA_TYPE_KEY_VALUES: list[tuple[str, str]] = list(DATA_TYPE_NAMES.items())

DEFAULT_DATA_TYPE = "Decimal"


# ==============================================================================
# Scope Configuration
# ==============================================================================

# Route scope_kind that selects the global metric subset
GLOBAL_SCOPE_IDENTIFIER = "global"
PARTITIONED_SCOPE_IDENTIFIER = "partitioned"

# Opaque predicate tokens understood by the store's query layer
WHERE_GLOBAL_METRICS = "(it.CostObject.IsGlobals==True)"
WHERE_NON_GLOBAL_METRICS = "(it.CostObject.IsGlobals==False)"

DEFAULT_PAGE_TITLE = "Metrics"
DEFAULT_PAGE_SIZE = 100


# ==============================================================================
# Validation Limits
# ==============================================================================

NAME_MAX_LENGTH = 64
DESCRIPTION_MAX_LENGTH = 256
COLUMN_NAME_MAX_LENGTH = 128
