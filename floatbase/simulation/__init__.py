from .cart_table import (
    CartTableControlParams,
    CartTableProperties,
    LinearControlledCartTableModel,
    ReducedBodyState,
)
