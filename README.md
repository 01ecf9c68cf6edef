# pstatebalance

Tools for building and solving discrete-time Markov chains that model
energy-aware load balancing between two finite queues. Each queue is served
by a pool of servers whose speed and power draw depend on a P-state level
(1 to 6) chosen from the queue length by five thresholds. When the two
queues sit in different levels, customers may be migrated from one queue to
the other if that strictly lowers the total energy, at a cost of one energy
unit per migrated customer.

The package covers the workflow:

1. generate the chain from the model (`pstatebalance.generator`),
2. compute its stationary distribution with the GTH algorithm, dense or
   sparse (`pstatebalance.gth`),
3. derive marginals and performance/energy measures
   (`pstatebalance.marginal`, `pstatebalance.rewards`),
4. inspect or reshape the chain: graph export, heat map of optimal
   migrations, state reordering (`pstatebalance.tgf`,
   `pstatebalance.heatmap`, `pstatebalance.reorder`).

No third-party libraries are needed.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Files

A model called `model` is stored as a set of plain text files:

| File          | Contents                                                        |
|---------------|-----------------------------------------------------------------|
| `model.sz`    | number of transitions, number of states, number of components (optional) |
| `model.cd`    | one line per state: state number, then each component's value   |
| `model.Rii`   | one line per state: number, degree, then (probability, target) pairs |
| `model.pi`    | stationary distribution                                         |

`pstatebalance.formats` reads and writes them: `read_sizes` / `write_sizes`
(a `SizeInfo`), `read_encoding` / `write_encoding` (a mapping from state
number to components), `read_matrix` / `write_matrix` (a list of
`MatrixRow`), and `read_distribution`, which accepts either one probability
per entry or the sparse solver's layout (state count, probabilities, sum).

## Command-line tools

Each tool prints its usage and exits with status 1 when its arguments are
wrong or its input files are missing.

Generate a chain. The arguments are the model name, the migration rate
(divided by 10 internally) and the five level thresholds, which must be
non-decreasing. The output files must not exist yet. The states from which
a migration is chosen are logged, one `source a b count` line each and a
final `-1`, to `Migration_States.data` in the directory of the model files.

```
pstate-generate -f model 2 3 6 12 24 48
```

Solve for the stationary distribution with dense GTH. The suffix names the
matrix file and must start with `R`; the result goes to `model.pi`, one
probability per line, and the run time is appended to `GTH.time` next to
the model:

```
pstate-gth -f model Rii
```

or with the sparse variant, which reads `model.sz` and `model.Rii` and
writes `model.pi` as the state count, the probabilities and their sum:

```
pstate-gth-sparse model
```

Write one marginal distribution per component to
`model.marginale.<component>.pi` (needs `model.sz`, `model.cd` and
`model.pi`; each component ranges over 0..90):

```
pstate-marginal -f model
```

Export the chain as a TGF graph (`model.tgf`): nodes labelled by their
components, then one edge per transition.

```
pstate-tgf -f model
```

Reorder the states by decreasing gap between the two queue lengths (ties
keep their order), writing `model-reordre.sz`, `model-reordre.cd` and
`model-reordre.Rii` with the states renumbered. It exits with status 2 if
an input file is missing.

```
pstate-reorder model
```

Compute the heat map of optimal migrations over every pair of queue lengths
(buffer 90, 10 servers, thresholds 3, 6, 12, 24, 48), write it to
`HeatMap.data` in the current directory and check that no target state of
a migration would itself migrate again:

```
pstate-heatmap
```

## Library use

```python
from pstatebalance.model import LoadBalancingModel, Thresholds
from pstatebalance.generator import generate_chain
from pstatebalance.gth import gth_sparse
from pstatebalance import rewards

model = LoadBalancingModel(
    thresholds=Thresholds((3, 6, 12, 24, 48)), gamma12=0.2, buffer_size=20
)
chain = generate_chain(model)
pi = gth_sparse(chain.rows, len(chain.states))
print(rewards.mean_customers(chain.states, pi, 1))
```

### Model

`pstatebalance.model` holds the default parameters (buffer 90, 15 servers,
arrival rates 20 and 10, service rates and power draw per level) and:

- `Thresholds`: five non-decreasing limits; `level(count)` gives the
  P-state level of a queue length.
- `Event`: the seven events of the uniformised chain (two arrivals, two
  services, migration from queue 1 or queue 2, loop).
- `Migration`: the source queue, the number of customers moved, the target
  state and the energy before and after.
- `LoadBalancingModel`: `initial_state()`, `bounds()`, `energy(a, b,
  migrations)`, `optimal_migration(state)` (None when both queues share a
  level or nothing is cheaper), `uniformisation_rate(migrations)`,
  `probability(event, state)` and `transition(state, event)`. Migrations
  take part in the chain only when `gamma12 > 0`.
- `state_energy(a, b, thresholds, migrations, servers, migration_energy)`:
  the energy function on its own.

### Chain generation and solving

`generate_chain(model)` explores the states reachable from the empty
system breadth first, numbering them in the order they are first reached,
and returns a `MarkovChain` (`states`, `rows`, `migrations`, `sizes()`).
It raises `ValueError` if a row's probabilities do not sum to 1.
`write_chain(chain, basename)` writes the `.cd`, `.Rii` and `.sz` files and
the migration log.

`pstatebalance.gth` provides `gth_dense(rows, size)` (rows placed by their
own index) and `gth_sparse(rows, size)` (the n-th row is state n), both
raising `SingularChainError` when a state has no transition to a lower
state. `write_dense_distribution`, `write_sparse_distribution`,
`solve_dense(basename, suffix)` and `solve_sparse(basename)` handle the
files; `main_dense` and `main_sparse` are the command-line entry points.

### Measures

`pstatebalance.rewards` takes the list of states and their probabilities:

- `read_migration_log(path)` returns `MigrationRecord` entries;
- `loss_probability`, `mean_customers`, `response_time` and
  `total_response_time` for queueing measures;
- `queue_energy` (power drawn by a queue, migration cost included) and
  `migration_energy`;
- `migration_probability` and `migration_sums`;
- `pstate_distribution` and `write_pstate_distribution`, which appends the
  level distribution to a report file only for migration rates 0 and 0.02.

`pstatebalance.marginal` offers `marginals(encoding, pi, bounds)` and
`write_marginals(basename, margins, bounds)`.

### Inspection and reshaping

- `pstatebalance.tgf`: `to_tgf(encoding, rows)` and `convert(basename)`.
- `pstatebalance.heatmap`: `compute_heatmap(buffer_size, servers,
  thresholds, migration_energy)` returns `HeatMapEntry` items,
  `format_heatmap(entries)` renders them and `check_property(entries)`
  raises `PropertyViolation` for a target that migrates again.
- `pstatebalance.reorder`: `EncodedState`, `sort_states(states)`,
  `reorder_matrix(rows, order)` and `split_blocks(states, rows, threshold,
  deadline, buffer_size, events)`, which cuts a renumbered matrix into its
  NO, NE, SE and SO blocks.

## Limits

The reward measures are available only as library functions: there is no
command that reads a solved model and prints its energy and response-time
figures. Likewise, `split_blocks` returns the four blocks in memory and is
not run by `pstate-reorder`; writing the blocks to files is left to the
caller.