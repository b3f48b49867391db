import asyncio

import pytest

from conftest import FakeEmbedder
from src.search import (
    NotLoadedError,
    ProviderError,
    SearchService,
    SearchServiceConfig,
    ValidationError,
)
from src.vectorstore.data_store import DatasetStore


def test_suggest_ranks_and_trims(store):
    embedder = FakeEmbedder(vectors={"angry": [0.0, 1.0]})
    service = SearchService(store=store, embedder=embedder)

    result = service.suggest("  angry  ", 2)

    assert result.query == "angry"
    assert embedder.calls == ["angry"]
    assert [r.text for r in result.results] == ["anger", "calm"]
    assert isinstance(result.elapsed_ms, int)
    assert result.elapsed_ms >= 0


def test_default_top_k_is_five(store, embedder):
    service = SearchService(store=store, embedder=embedder)
    assert len(service.suggest("joy").results) == 4  # clamped to dataset size

    service = SearchService(store=store, embedder=embedder, config=SearchServiceConfig(default_top_k=1))
    assert len(service.suggest("joy").results) == 1


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_empty_query_never_calls_provider(store, text):
    embedder = FakeEmbedder()
    service = SearchService(store=store, embedder=embedder)

    with pytest.raises(ValidationError):
        service.suggest(text, 5)

    assert embedder.calls == []


@pytest.mark.parametrize("k", [0, -3])
def test_non_positive_k_never_calls_provider(store, k):
    embedder = FakeEmbedder()
    service = SearchService(store=store, embedder=embedder)

    with pytest.raises(ValidationError):
        service.suggest("joy", k)

    assert embedder.calls == []


def test_not_loaded_store_fails_before_provider():
    embedder = FakeEmbedder()
    service = SearchService(store=DatasetStore(), embedder=embedder)

    with pytest.raises(NotLoadedError):
        service.suggest("joy", 5)

    assert embedder.calls == []


def test_provider_failure_is_wrapped_without_retry(store):
    cause = RuntimeError("429 rate limited")
    embedder = FakeEmbedder(error=cause)
    service = SearchService(store=store, embedder=embedder)

    with pytest.raises(ProviderError) as excinfo:
        service.suggest("joy", 5)

    assert excinfo.value.__cause__ is cause
    assert embedder.calls == ["joy"]
    assert store.count() == 4


def test_per_call_embedder_overrides_default(store):
    default = FakeEmbedder()
    override = FakeEmbedder(default=[0.0, 1.0])
    service = SearchService(store=store, embedder=default)

    result = service.suggest("anything", 1, embedder=override)

    assert result.results[0].text == "anger"
    assert default.calls == []
    assert override.calls == ["anything"]


def test_result_to_dict(store, embedder):
    service = SearchService(store=store, embedder=embedder)
    payload = service.suggest("joy", 1).to_dict()
    assert set(payload) == {"query", "results", "elapsedMs"}
    assert payload["results"][0]["text"] == "joy"


def test_asuggest(store):
    embedder = FakeEmbedder(vectors={"calm": [1.0, 1.0]})
    service = SearchService(store=store, embedder=embedder)

    result = asyncio.run(service.asuggest(" calm ", 1))

    assert result.query == "calm"
    assert result.results[0].text == "calm"


def test_asuggest_provider_failure(store):
    service = SearchService(store=store, embedder=FakeEmbedder(error=TimeoutError("slow")))
    with pytest.raises(ProviderError):
        asyncio.run(service.asuggest("joy", 3))


def test_asuggest_timeout_is_provider_error(store):
    service = SearchService(
        store=store,
        embedder=FakeEmbedder(delay=1.0),
        config=SearchServiceConfig(embedding_timeout_sec=0.01),
    )
    with pytest.raises(ProviderError):
        asyncio.run(service.asuggest("joy", 3))


def test_cancellation_propagates_and_leaves_store_intact(store):
    slow = FakeEmbedder(delay=5.0)
    fast = FakeEmbedder(default=[0.0, 1.0])
    service = SearchService(store=store, embedder=slow)

    async def scenario():
        task = asyncio.create_task(service.asuggest("joy", 2))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return await service.asuggest("anger", 1, embedder=fast)

    result = asyncio.run(scenario())

    assert result.results[0].text == "anger"
    assert store.count() == 4


def test_provider_timeout_without_configured_limit_keeps_provider_message(store):
    service = SearchService(store=store, embedder=FakeEmbedder(error=TimeoutError("read timed out")))

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(service.asuggest("joy", 3))

    assert str(excinfo.value) == "Embedding failed: read timed out"
    assert "None" not in str(excinfo.value)


def test_configured_limit_is_reported(store):
    service = SearchService(
        store=store,
        embedder=FakeEmbedder(delay=1.0),
        config=SearchServiceConfig(embedding_timeout_sec=0.01),
    )
    with pytest.raises(ProviderError, match="timed out after 0.01s"):
        asyncio.run(service.asuggest("joy", 3))
