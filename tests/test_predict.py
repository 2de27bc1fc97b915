"""Tests for the forward inference contract."""
import gc

import pytest
import torch

from stemi_detection.errors import InferenceError
from stemi_detection.inference.pipeline import predict, preprocess
from stemi_detection.models.cnn_model import build_model


def _live_tensor_count():
    gc.collect()
    return sum(1 for obj in gc.get_objects() if torch.is_tensor(obj))


@pytest.fixture
def input_tensor(random_image_bytes):
    return preprocess(random_image_bytes)


def test_returns_two_probabilities_summing_to_one(seeded_model, input_tensor):
    no_stemi_prob, stemi_prob = predict(seeded_model, input_tensor)

    assert isinstance(no_stemi_prob, float)
    assert isinstance(stemi_prob, float)
    assert 0.0 <= no_stemi_prob <= 1.0
    assert 0.0 <= stemi_prob <= 1.0
    assert no_stemi_prob + stemi_prob == pytest.approx(1.0, abs=1e-5)


@pytest.mark.parametrize("fill", [0.0, 0.5, 1.0])
def test_constant_inputs_give_valid_probabilities(seeded_model, fill):
    probs = predict(seeded_model, torch.full((1, 224, 224, 3), fill))

    assert sum(probs) == pytest.approx(1.0, abs=1e-5)


def test_predict_is_idempotent(seeded_model, input_tensor):
    first = predict(seeded_model, input_tensor)
    second = predict(seeded_model, input_tensor)

    assert first == second


def test_predict_does_not_modify_input(seeded_model, input_tensor):
    before = input_tensor.clone()

    predict(seeded_model, input_tensor)

    assert torch.equal(before, input_tensor)


def test_unbatched_tensor_gets_batch_dimension(seeded_model, input_tensor):
    assert predict(seeded_model, input_tensor[0]) == predict(seeded_model, input_tensor)


def test_bare_network_is_accepted(seeded_model, input_tensor):
    assert predict(seeded_model.network, input_tensor) == predict(seeded_model, input_tensor)


@pytest.mark.parametrize("shape", [(1, 3, 224, 224), (2, 224, 224, 3), (1, 112, 112, 3), (224, 224)])
def test_shape_mismatch_raises_inference_error(seeded_model, shape):
    with pytest.raises(InferenceError):
        predict(seeded_model, torch.zeros(shape))


def test_non_tensor_raises_inference_error(seeded_model):
    with pytest.raises(InferenceError):
        predict(seeded_model, [[0.0, 1.0]])


def test_no_tensor_leak_after_repeated_calls(seeded_model, input_tensor):
    baseline = _live_tensor_count()

    for _ in range(5):
        predict(seeded_model, input_tensor)

    assert _live_tensor_count() == baseline


def test_no_tensor_leak_with_unbatched_input(seeded_model, input_tensor):
    unbatched = input_tensor[0]
    baseline = _live_tensor_count()

    for _ in range(3):
        predict(seeded_model, unbatched)

    assert _live_tensor_count() == baseline


def test_no_tensor_leak_after_failed_calls(seeded_model):
    bad = torch.zeros(1, 3, 224, 224)
    baseline = _live_tensor_count()

    for _ in range(3):
        with pytest.raises(InferenceError):
            predict(seeded_model, bad)

    assert _live_tensor_count() == baseline


def test_fixed_seed_models_agree(input_tensor):
    first = build_model(seed=7, device="cpu")
    second = build_model(seed=7, device="cpu")

    assert predict(first, input_tensor) == predict(second, input_tensor)


def test_unseeded_models_generally_differ(input_tensor):
    first = build_model(device="cpu")
    second = build_model(device="cpu")

    assert predict(first, input_tensor) != predict(second, input_tensor)
