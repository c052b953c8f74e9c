# leapsql

Building blocks for a SQL transformation tool: read SQL model files,
pull their configuration out of YAML frontmatter and comment pragmas,
map table names back to the models that produce them, and evaluate
small template expressions against a model's configuration.

## Installation

```
pip install .
```

Running the test suite needs the `test` extra:

```
pip install ".[test]"
pytest
```

## Model files

A model is a `.sql` file. Its configuration can sit in a YAML block at
the very top of the file:

```sql
/*---
name: user_metrics
materialized: incremental
unique_key: user_id
owner: data-team
schema: analytics
tags: [users, metrics]
tests:
  - unique: [user_id]
  - not_null: [user_id, created_at]
  - accepted_values:
      column: status
      values: [active, churned]
meta:
  priority: high
---*/

SELECT user_id, COUNT(*) AS events FROM events GROUP BY user_id
```

Only the fields shown above, plus `description`, are accepted; any other
top-level field raises `UnknownFieldError`, and custom data belongs
under `meta`. `materialized` must be one of `table`, `view` or
`incremental`. Malformed YAML and values of the wrong shape raise
`FrontmatterParseError`. YAML timestamps are kept as plain strings.

```python
from leapsql.frontmatter import extract_frontmatter

with open("models/marts/user_metrics.sql", encoding="utf-8") as fh:
    result = extract_frontmatter(fh.read())
if result.has_yaml:
    print(result.config.name, result.config.materialized)
print(result.sql)  # the SQL after the frontmatter block, stripped
```

`FrontmatterConfig.apply_defaults(filename, dir_path)` fills in a missing
name from the file name (without `.sql`), `table` as the
materialization, and, when `dir_path` is not empty, the directory as the
schema.

Files may also use comment pragmas, which are applied after the
frontmatter and so take precedence over it:

```sql
-- @config(materialized='view', unique_key='id')
-- @import(staging.orders, staging.customers)
-- #if env == 'prod'
WHERE created_at > '2024-01-01'
-- #endif
```

`@config` sets `materialized` and `unique_key`, `@import` adds to the
model's `imports`, and each `#if` … `#endif` block becomes a
`Conditional` with its condition and the lines it holds. Pragma lines
and conditional blocks are removed from the model's `sql`.

## Parsing and scanning

```python
from leapsql.parser import Parser, Scanner, extract_references

parser = Parser("/project/models")
model = parser.parse_file("/project/models/staging/users.sql")
print(model.path)          # staging.users
print(model.name)          # users, unless the frontmatter names it
print(model.materialized)  # table unless configured otherwise
print(model.imports)       # from @import pragmas

models = Scanner("/project/models").scan_dir("/project/models")

extract_references("SELECT * FROM {{ ref('staging.orders') }}")
# ['staging.orders']
```

`Parser.model_path(file_path)` turns a file's location under the base
directory into a dotted path, falling back to the bare file name when
the file cannot be placed relative to the base. `Scanner.scan_dir`
walks a directory tree in name order, parses every `.sql` file and
skips hidden files. `extract_references(sql)` lists the distinct
`ref('...')` or `ref("...")` targets in order of first appearance.

Each parsed model is a `ModelConfig` dataclass holding its path, name,
file path, materialization, unique key, owner, schema, tags, meta,
tests, imports, SQL, raw content, conditionals and whether frontmatter
was found.

## Resolving dependencies

`ModelRegistry` maps table names to the models that produce them. A
model registered as `staging.stg_customers` is found by its path, by
its bare name `stg_customers`, and under other schema prefixes such as
`public.stg_customers`.

```python
from leapsql.registry import ModelRegistry

registry = ModelRegistry()
for model in models:
    registry.register(model)

registry.resolve("public.stg_customers")   # 'staging.stg_customers' or None
dependencies, external = registry.resolve_dependencies(
    ["staging.stg_customers", "stg_customers", "raw_orders"]
)
```

Both lists keep first-seen order and are de-duplicated: dependencies by
model path, external sources by table name. The registry also offers
`get_model`, `all_models`, `len(registry)`,
`register_external_source` and `is_external_source`, and is safe to use
from several threads.

## Template expressions

Templates see four globals: `config` (the model configuration), `env`
(the environment name), `target` (database details) and `this` (the
current model). Macro namespaces can be added alongside them with
`ExecutionContext.add_macros`, as long as they do not reuse one of
those four names (a `ValueError` otherwise).

```python
from leapsql.context import new_context
from leapsql.template_globals import build_config_dict
from leapsql.values import TargetInfo, ThisInfo

config = build_config_dict("orders", "table", "", "finance", "analytics", [], {})
ctx = new_context(
    config,
    "prod",
    TargetInfo(type="duckdb", schema="analytics", database="warehouse.db"),
    ThisInfo(name="orders", schema="analytics"),
)

ctx.eval_expr_string('"prefix_" + config["name"]', "orders.sql", 1)  # 'prefix_orders'
ctx.eval_expr_string("target.schema", "orders.sql", 2)               # 'analytics'
ctx.eval_expr_string('"production" if env == "prod" else "development"', "orders.sql", 3)
```

Expressions use a small Python-like language: literals, names,
attribute and index access, slicing, arithmetic, comparisons, `and` /
`or` / `not`, conditional expressions, and calls to builtins such as
`str`, `len`, `int`, `min`, `max`, `sorted` and `range` or to methods of
strings, lists and dicts. `eval_expr` returns the value;
`eval_expr_string` renders it as text (strings as-is, `None` as an
empty string, everything else in template notation). Both accept extra
`locals` that take precedence over the globals. A failed evaluation
raises `EvalError`, whose message names the file, the line (when
positive) and the expression. `leapsql.context.evaluate(expr, globals)`
evaluates an expression without a context.

`leapsql.values` provides the value helpers: `Struct` (an immutable
record read by attribute, as `target` and `this` are), `to_value` and
`from_value` for converting plain data to and from template values, and
`format_value` for rendering a value in template notation.
`leapsql.template_globals` has `config_to_value`, `build_config_dict`
and `predeclared`.

For evaluating many expressions at once, `leapsql.threads.ParallelExecutor`
evaluates a list of `EvalTask`s concurrently against shared globals and
returns one `EvalResult` per task, in task order, each carrying either a
value or the error it raised. `ThreadPool` keeps a bounded set of
reusable evaluation threads.

## What this package does not do

- It does not read the SQL itself to find which tables or columns a
  model uses: `ModelConfig.sources` and `ModelConfig.columns` are left
  empty by the parser. Fill them yourself if you want to feed them to
  `ModelRegistry.resolve_dependencies`.
- It does not build a dependency graph or an execution order, run any
  SQL, connect to a database or store state.
- It has no command-line tool; it is used as a library.