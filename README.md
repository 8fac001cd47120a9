# kubestatemetrics

Turn Kubernetes objects into Prometheus metrics in the text exposition format.

Objects are plain mappings shaped like the Kubernetes JSON/YAML form, with
`metadata`, `spec` and `status` keys (for example a dict loaded from
`kubectl get configmap -o json`). Timestamps such as
`metadata.creationTimestamp` may be a `datetime` (naive ones are taken as
UTC), an RFC 3339 string or a number of seconds.

Each supported resource kind has a module with a `METRIC_FAMILIES` list of
`FamilyGenerator`s:

| collector name               | module                                        |
|------------------------------|-----------------------------------------------|
| `certificatesigningrequests` | `kubestatemetrics.certificatesigningrequest`  |
| `configmaps`                 | `kubestatemetrics.configmap`                  |
| `cronjobs`                   | `kubestatemetrics.cronjob`                    |
| `daemonsets`                 | `kubestatemetrics.daemonset`                  |
| `deployments`                | `kubestatemetrics.deployment`                 |
| `endpoints`                  | `kubestatemetrics.endpoint`                   |
| `horizontalpodautoscalers`   | `kubestatemetrics.hpa`                        |
| `ingresses`                  | `kubestatemetrics.ingress`                    |
| `jobs`                       | `kubestatemetrics.job`                        |
| `limitranges`                | `kubestatemetrics.limitrange`                 |
| `namespaces`                 | `kubestatemetrics.namespace`                  |

A generator turns one object into a `Family` of `Metric`s, which render as
exposition lines such as:

```
kube_configmap_info{namespace="ns1",configmap="configmap1"} 1
```

The package has no dependencies outside the standard library.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Building stores

`Builder` picks the collectors to run and builds one `MetricsStore` for each.
It needs an object with `is_included(name)` and `is_excluded(name)` methods;
only the families for which `is_included` returns true are exposed.

```python
import io
from kubestatemetrics.builder import Builder

class AllowAll:
    def is_included(self, name):
        return True

    def is_excluded(self, name):
        return False

builder = Builder()
builder.with_enabled_resources(["configmaps", "namespaces"])
builder.with_namespaces(["ns1"])
builder.with_allow_deny_list(AllowAll())
stores = builder.build()          # sorted by collector name

configmaps = stores[0]
configmaps.add({"metadata": {"name": "configmap1", "namespace": "ns1",
                             "resourceVersion": "123456"}})
out = io.StringIO()
configmaps.write_all(out)
print(out.getvalue())
```

- `with_enabled_resources` raises `UnknownCollectorError` (a `ValueError`)
  for a name that is not in `available_collectors()`; `collector_exists(name)`
  tells whether a collector is known. The enabled names are kept sorted.
- `with_namespaces` limits the objects a store keeps to those namespaces. An
  empty list, or one holding `""`, keeps objects of every namespace. The
  cluster-wide collectors (`certificatesigningrequests`, `namespaces`) ignore
  this setting.
- `build` raises `RuntimeError` when no allow/deny list was set.

A `MetricsStore` keeps the rendered metrics of each object, keyed by
`metadata.uid`, or by namespace and name when there is no uid. `add` and
`update` render and store an object's metrics, `delete` forgets them, and
`len(store)` is the number of objects held. `write_all(stream)` writes, for
each family, its `# HELP` / `# TYPE` lines followed by that family's samples
for every stored object.

## Lower-level helpers

`kubestatemetrics.metric` holds the building blocks:

- `Metric.render(name)` and `Family.render(name)` produce exposition lines;
  `FamilyGenerator.generate(obj)` and `FamilyGenerator.header()` give a
  family's samples and its header.
- `compose_metric_gen_funcs(families)` gives one function that returns the
  rendered text of every family for an object.
- `extract_metric_family_headers(families)` gives the `# HELP` / `# TYPE` lines.
- `filter_metric_families(allow_deny_list, families)` keeps only the families
  the list includes.
- `kube_labels_to_prometheus_labels(labels)` turns Kubernetes labels into
  sorted, sanitized `label_*` keys and their values; `sanitize_label_name`
  replaces characters not allowed in a label name with `_`.
- `add_condition_metrics(status)` yields one metric per condition status
  (`true`, `false`, `unknown`), set to 1 for the given one.
- `with_object_labels(keys, fields, func)` prefixes every sample with labels
  taken from the object's metadata.

Other modules:

- `kubestatemetrics.cron.parse_standard(spec)` parses five-field cron specs,
  `@yearly`/`@monthly`/`@weekly`/`@daily`/`@hourly` descriptors, `@every
  <duration>` and a leading `TZ=` or `CRON_TZ=` zone. It raises
  `CronParseError` on bad input. `CronSchedule.next(after)` returns the next
  matching time (naive datetimes are taken as local time), or `None` if
  nothing matches within five years.
- `kubestatemetrics.cronjob.get_next_scheduled_time(schedule, last, created)`
  gives the next run after the last scheduled time, or after creation when the
  job has never run; it feeds `kube_cronjob_next_schedule_time`.
- `kubestatemetrics.deployment.get_value_from_int_or_percent(value, total,
  round_up)` resolves rolling-update values such as `10` or `"20%"`.
- `kubestatemetrics.quantity.parse_quantity(text)` parses resource quantities
  such as `2.1G`, `500m` or `2Gi` into a `Decimal`.

## What this package does not do

It does not talk to a Kubernetes API server: nothing here lists or watches
objects, so feeding objects to `MetricsStore.add`, `update` and `delete` is
up to the caller. It has no HTTP server exposing the metrics and no
command-line program; `write_all` writes to any text stream you give it.
Resource kinds other than the eleven listed above are not covered.