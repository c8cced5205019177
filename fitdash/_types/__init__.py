from fitdash._types.base import *
from fitdash._types import columns as special_columns
from fitdash._types.activitydata import ActivityData
