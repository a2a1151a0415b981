"""Test suite for parameter normalization."""

import pytest

from agent_bridge.params import merge_params, normalize_params


class TestParamsNormalization:
    """Test parameter normalization functionality."""

    def test_basic_params_normalization(self):
        """Test basic parameter normalization with core parameters."""
        params = normalize_params(
            {
                "temperature": 0.7,
                "max_tokens": 100,
                "top_p": 0.9,
                "frequency_penalty": 0.5,
                "presence_penalty": 0.2,
            }
        )

        assert params["temperature"] == 0.7
        assert params["max_tokens"] == 100
        assert params["top_p"] == 0.9
        assert params["frequency_penalty"] == 0.5
        assert params["presence_penalty"] == 0.2
        assert params["extra"] == {}

    def test_extra_params_handling(self):
        """Unknown keys move into extra."""
        params = normalize_params(
            {"temperature": 0.7, "reasoning_effort": "minimal", "top_k": 40}
        )

        assert params["temperature"] == 0.7
        assert params["extra"] == {"reasoning_effort": "minimal", "top_k": 40}

    def test_none_values_dropped(self):
        """None values never reach the adapters."""
        params = normalize_params({"temperature": 0.7, "max_tokens": None})

        assert "max_tokens" not in params
        assert normalize_params(None) == {"extra": {}}

    def test_existing_extra_dict_merge(self):
        """The caller's explicit extra wins over moved keys."""
        params = normalize_params(
            {"reasoning_effort": "minimal", "extra": {"reasoning_effort": "high", "custom": 1}}
        )

        assert params["extra"] == {"reasoning_effort": "high", "custom": 1}

    def test_edge_case_values(self):
        """Zero values are kept."""
        params = normalize_params({"temperature": 0.0, "max_tokens": 0, "stop": []})

        assert params["temperature"] == 0.0
        assert params["max_tokens"] == 0
        assert params["stop"] == []

    @pytest.mark.parametrize("key", ["messages", "model", "tools", "stream", "system"])
    def test_reserved_keys_rejected(self, key):
        """Adapters own the request shape."""
        with pytest.raises(ValueError):
            normalize_params({key: "x"})

    def test_rejects_non_dict(self):
        with pytest.raises(TypeError):
            normalize_params([("temperature", 1)])


class TestMergeParams:
    """Defaults from config merged under per-call params."""

    def test_overrides_win(self):
        merged = merge_params(
            {"temperature": 0.1, "max_tokens": 50, "top_k": 10},
            {"temperature": 0.9, "extra": {"top_k": 20}},
        )

        assert merged["temperature"] == 0.9
        assert merged["max_tokens"] == 50
        assert merged["extra"] == {"top_k": 20}

    def test_empty_inputs(self):
        assert merge_params(None, None) == {"extra": {}}
