"""Unit tests for dotenv_azure.domain.merge."""

import pytest

from dotenv_azure.domain.merge import (
    APP_CONFIGURATION,
    KEY_VAULT,
    LOCAL,
    MERGE_PRECEDENCE,
    merge_layers,
    merge_variables,
)


class TestMergeVariables:
    def test_disjoint_layers_are_combined(self):
        """
        Given local A, remote B and secret C
        When merge_variables is called
        Then all three keys are present
        """
        merged = merge_variables(secrets={"C": "3"}, remote={"B": "2"}, local={"A": "1"})
        assert merged == {"A": "1", "B": "2", "C": "3"}

    def test_local_wins_over_everything(self):
        """
        Given the same key in every layer
        When merge_variables is called
        Then the local value wins
        """
        merged = merge_variables(secrets={"K": "s"}, remote={"K": "r"}, local={"K": "l"})
        assert merged["K"] == "l"

    def test_plain_remote_wins_over_secret(self):
        """
        Given the same key as a secret and a plain remote value
        When merge_variables is called without a local value
        Then the plain remote value wins
        """
        merged = merge_variables(secrets={"K": "s"}, remote={"K": "r"})
        assert merged["K"] == "r"

    def test_missing_layers_are_empty(self):
        """
        Given no layers at all
        When merge_variables is called
        Then an empty mapping is returned
        """
        assert merge_variables() == {}

    def test_inputs_are_not_mutated(self):
        """
        Given input mappings
        When merge_variables is called
        Then the inputs are unchanged and the result is a new dict
        """
        local = {"A": "1"}
        remote = {"A": "2", "B": "2"}
        merged = merge_variables(remote=remote, local=local)
        assert local == {"A": "1"}
        assert remote == {"A": "2", "B": "2"}
        assert merged is not local


class TestMergeLayers:
    def test_precedence_order(self):
        """
        Given the precedence constant
        Then Key Vault is lowest and local is highest
        """
        assert MERGE_PRECEDENCE == (KEY_VAULT, APP_CONFIGURATION, LOCAL)

    def test_unknown_layer_is_rejected(self):
        """
        Given a layer name outside the precedence order
        When merge_layers is called
        Then ValueError is raised
        """
        with pytest.raises(ValueError, match="cache"):
            merge_layers({"cache": {"A": "1"}})

    def test_order_of_mapping_does_not_matter(self):
        """
        Given layers passed highest precedence first
        When merge_layers is called
        Then precedence still follows MERGE_PRECEDENCE
        """
        merged = merge_layers({LOCAL: {"K": "l"}, KEY_VAULT: {"K": "s"}})
        assert merged == {"K": "l"}
