from ._validation import CandidateLimitError, MiningConfigError
from .apriori import Apriori, apriori, run_levelwise
from .candidates import generate_candidates
from .config import MiningConfig
from .diagnostics import (
    EventRecorder,
    ItemsDiscovered,
    LevelCompleted,
    MiningTerminated,
    ProgressPrinter,
    RulesGenerated,
    TransactionsDiscovered,
)
from .dictionary import ItemDictionary
from .export import (
    CsvMaterializer,
    DataFrameMaterializer,
    ParquetMaterializer,
    materialize_rules,
)
from .itemset import Itemset
from .mine import MiningResult, mine
from .pruning import prune_candidates
from .rules import RuleSet, generate_rules
from .store import FrequentItemsetStore, FrequentLevel
from .support import count_support
from .transactions import (
    TransactionStore,
    encode_transactions,
    from_arrow,
    from_pandas,
    from_polars,
    from_transactions,
)

__all__ = [
    "mine",
    "MiningResult",
    "MiningConfig",
    "Apriori",
    "apriori",
    "run_levelwise",
    "Itemset",
    "ItemDictionary",
    "TransactionStore",
    "encode_transactions",
    "from_transactions",
    "from_pandas",
    "from_polars",
    "from_arrow",
    "generate_candidates",
    "prune_candidates",
    "count_support",
    "FrequentLevel",
    "FrequentItemsetStore",
    "RuleSet",
    "generate_rules",
    "materialize_rules",
    "DataFrameMaterializer",
    "ParquetMaterializer",
    "CsvMaterializer",
    "EventRecorder",
    "ProgressPrinter",
    "ItemsDiscovered",
    "TransactionsDiscovered",
    "LevelCompleted",
    "MiningTerminated",
    "RulesGenerated",
    "MiningConfigError",
    "CandidateLimitError",
]
