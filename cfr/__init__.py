from cfr.errors import (
    CFRError, ConfigurationError,
    InfoSetArityMismatch, MalformedHistoryError,
)
from cfr.infoset import InfoSet, InfoSetStore, merge_updates
from cfr.walker import TreeWalker, WalkResult
from cfr.config import CFRConfig
from cfr.trainer import CFRTrainer, TrainingResult
from cfr.extractor import average_strategy_profile, current_strategy_profile
from cfr.evaluation import exploitability, expected_value
