# mercure-hub

The core of a Mercure hub. It holds the data model and the matching logic
that decide which subscriber receives which update.

## Modules

- `mercure_hub.update`: `Update` is a server-sent event (`id`, `data`,
  `type`, `retry`) sent to one or more `topics`. It can be `private`. A
  negative `retry` raises `ValueError`. `assign_uuid` gives an update a
  `urn:uuid:` ID if it has none. `Update.to_log_dict` returns the fields worth
  logging, and includes `data` only when `debug` is set.
- `mercure_hub.templates`: `template_regexp` compiles a URI template such as
  `https://example.com/books/{id}` into a pattern that matches its expansions.
  It raises `TemplateError` for an invalid template.
- `mercure_hub.topic_selector`: `TopicSelectorStore.match(topic, selector)`
  accepts `*`, exact matches and URI templates, and can cache compiled
  templates and results.
  - `new_topic_selector_store_lru(max_entries_per_shard, shard_count)` uses a
    `ShardedLRUCache`. Passing 0 entries turns caching off. A shard count of 0
    means 256 shards.
  - `new_topic_selector_store_ristretto(num_counters, max_cost)` uses a
    `CostBoundedCache`. Passing 0 counters turns caching off.
- `mercure_hub.subscriber`: `Subscriber` holds the selectors a client
  subscribed to and the private selectors it is allowed to read.
  - `match` and `match_topics` decide what the subscriber may receive.
  - Live updates dispatched before `ready()` are queued, so updates from the
    history reach the subscriber first.
  - At most `OUT_BUFFER_LENGTH` (1000) updates are buffered. A subscriber that
    falls further behind is disconnected.
  - `receive(timeout)` returns the next update. It returns `None` once the
    subscriber is disconnected and its buffer is empty, and raises
    `TimeoutError` if nothing arrives within the timeout.
  - `get_subscriptions` returns `Subscription` objects. `escape_topics`
    URL-escapes topics.
- `mercure_hub.subscription`: `Subscription` and `SubscriptionCollection` are
  the JSON-LD documents that describe active subscriptions. Each has
  `to_dict()` and `to_json()`.
- `mercure_hub.subscriber_list`: `SubscriberList` holds subscribers in
  insertion order and provides:
  - `add`, `remove` and `len()`;
  - `match_any(update)`, which returns the matching subscribers;
  - `walk(start, callback)`, which visits the subscribers in order.

  `encode` and `decode` convert a topic list and the private flag to and from
  a single key.
- `mercure_hub.transport`: the `Transport` and `TransportSubscribers`
  interfaces. Other names in this module:
  - `register_transport_factory` and `new_transport` map a URL scheme to a
    transport.
  - `get_subscribers` lists a `SubscriberList`.
  - `TransportError` is raised for an unknown scheme or an invalid DSN.
    `ClosedTransportError` is for use after a transport is closed.
  - `EARLIEST_LAST_EVENT_ID` is the string `"earliest"`.
- `mercure_hub.metrics`: `PrometheusMetrics` counts subscribers and updates
  with `Counter` and `Gauge` metrics in a `Registry`, and `Registry.render`
  prints them in the Prometheus text format. `NopMetrics` collects nothing.

## Installation

```
pip install mercure-hub
```

To run the test suite, install the `test` extra:

```
pip install "mercure-hub[test]"
pytest
```

## Example

```python
import logging

from mercure_hub.subscriber import Subscriber
from mercure_hub.subscriber_list import SubscriberList
from mercure_hub.update import Update, assign_uuid

logger = logging.getLogger("hub")

subscriber = Subscriber("", logger)
subscriber.set_topics(["https://example.com/books/{id}"], None)
subscriber.ready()

subscribers = SubscriberList(100)
subscribers.add(subscriber)

update = Update(topics=["https://example.com/books/1"], data="Hello!")
assign_uuid(update)

for target in subscribers.match_any(update):
    target.dispatch(update, False)

received = subscriber.receive(timeout=1)
print(received.id, received.data)
```

A private update reaches a subscriber only if one of its allowed selectors
matches:

```python
subscriber.set_topics(
    ["https://example.com/books/{id}"],
    ["https://example.com/books/42"],
)
subscriber.match(Update(topics=["https://example.com/books/42"], private=True))  # True
subscriber.match(Update(topics=["https://example.com/books/1"], private=True))   # False
```

## Plugging in a transport

The package ships no transports of its own. You implement the interfaces and
register a factory for a URL scheme. The factory receives the parsed URL and
a logger:

```python
from mercure_hub.subscriber_list import SubscriberList
from mercure_hub.transport import (
    EARLIEST_LAST_EVENT_ID,
    ClosedTransportError,
    Transport,
    TransportSubscribers,
    get_subscribers,
    new_transport,
    register_transport_factory,
)
from mercure_hub.update import assign_uuid


class MemoryTransport(Transport, TransportSubscribers):
    def __init__(self):
        self.subscribers = SubscriberList(100)
        self.closed = False

    def dispatch(self, update):
        if self.closed:
            raise ClosedTransportError()
        assign_uuid(update)
        for subscriber in self.subscribers.match_any(update):
            subscriber.dispatch(update, False)

    def add_subscriber(self, subscriber):
        if self.closed:
            raise ClosedTransportError()
        self.subscribers.add(subscriber)
        subscriber.ready()

    def remove_subscriber(self, subscriber):
        self.subscribers.remove(subscriber)

    def close(self):
        self.closed = True
        for subscriber in get_subscribers(self.subscribers):
            subscriber.disconnect()

    def get_subscribers(self):
        return EARLIEST_LAST_EVENT_ID, get_subscribers(self.subscribers)


register_transport_factory("memory", lambda url, logger: MemoryTransport())
transport = new_transport("memory://")
```

`new_transport("unknown://x")` raises `TransportError`, whose message is
`"unknown://x": invalid transport: no such transport available`.

## Metrics

```python
from mercure_hub.metrics import PrometheusMetrics

metrics = PrometheusMetrics(None)
metrics.subscriber_connected(subscriber)
metrics.update_published(update)
print(metrics.registry.render())
```

This prints `mercure_subscribers_connected`, `mercure_subscribers_total` and
`mercure_updates_total` in the Prometheus exposition format. Registering two
metrics under the same name in one `Registry` raises `ValueError`.

## What this package does not do

These are building blocks only. The package does not include:

- an HTTP server, or handlers for publishing, subscribing or listing
  subscriptions;
- JWT authorization;
- a transport implementation or storage for update history;
- a command-line program.

A hub built on the package provides these itself.