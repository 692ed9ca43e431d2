"""Unit tests for openadr_overlay.overlay.topic_manager module."""

from openadr_overlay.overlay.topic_manager import TOPIC, OpenADRTopicManager


class TestIdentifyAdmissibleOutputs:
    """Test output admission."""

    def test_admits_only_contract_outputs(self, codec, make_fields, make_event_tx) -> None:
        manager = OpenADRTopicManager(codec)
        tx = make_event_tx(b"\x76\xa9", make_fields(), b"", make_fields(event_type="PRICE"))

        instructions = manager.identify_admissible_outputs(tx.to_bytes(), [])

        assert instructions.outputs_to_admit == (1, 3)

    def test_accepts_parsed_transactions(self, codec, make_fields, make_event_tx) -> None:
        manager = OpenADRTopicManager(codec)
        instructions = manager.identify_admissible_outputs(make_event_tx(make_fields()), [])
        assert instructions.outputs_to_admit == (0,)

    def test_rejects_empty_event_type_or_program(self, codec, make_fields, make_event_tx) -> None:
        manager = OpenADRTopicManager(codec)
        tx = make_event_tx(make_fields(event_type=""), make_fields(program_id=""))

        assert manager.identify_admissible_outputs(tx, []).outputs_to_admit == ()

    def test_malformed_transaction_admits_nothing(self, codec) -> None:
        manager = OpenADRTopicManager(codec)

        instructions = manager.identify_admissible_outputs(b"\x01\x00", ["coin"])

        assert instructions.outputs_to_admit == ()
        assert instructions.coins_to_retain == ["coin"]

    def test_previous_coins_are_returned_unchanged(
        self, codec, make_fields, make_event_tx
    ) -> None:
        coins = (0, 2)
        instructions = OpenADRTopicManager(codec).identify_admissible_outputs(
            make_event_tx(make_fields()), coins
        )
        assert instructions.coins_to_retain is coins


class TestMetadata:
    def test_documentation_and_metadata(self, codec) -> None:
        manager = OpenADRTopicManager(codec)
        assert manager.topic == TOPIC
        assert "OpenADR" in manager.get_documentation()
        assert manager.get_metadata()["name"] == "OpenADR Topic Manager"
