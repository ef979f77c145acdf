"""
Tests for the Larder error hierarchy.

Covers ErrorContext coercion and serialization, the exception classes and the
factory helpers in larder.shared.errors.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from pathlib import Path

import pytest

from larder.shared.errors import (
    ApplicationError,
    CacheError,
    CliError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    LarderError,
    create_cache_error,
    create_cli_error,
    create_config_error,
    create_network_error,
    create_validation_error,
)


class _Shelf(Enum):
    DRY = "dry"


class TestErrorContext:
    """Test cases for the ErrorContext frozen dataclass."""

    def test_empty_context(self) -> None:
        context = ErrorContext()

        assert context.operation is None
        assert context.resource is None
        assert context.additional_data is None

    def test_additional_data_is_coerced_to_primitives(self) -> None:
        context = ErrorContext(
            additional_data={
                "path": Path("/tmp/pantry.toml"),
                "shelf": _Shelf.DRY,
                "price": Decimal("1.5"),
                "skipped": None,
                "qty": 3,
            }
        )

        assert context.additional_data == {
            "path": str(Path("/tmp/pantry.toml")),
            "shelf": "dry",
            "price": 1.5,
            "qty": 3,
        }

    def test_unsupported_value_type_rejected(self) -> None:
        with pytest.raises(TypeError, match="Cannot coerce"):
            ErrorContext(additional_data={"items": [1, 2]})

    def test_non_dict_additional_data_rejected(self) -> None:
        with pytest.raises(TypeError, match="must be dict"):
            ErrorContext(additional_data=["x"])  # type: ignore[arg-type]

    def test_context_is_frozen(self) -> None:
        context = ErrorContext(operation="cache_get")

        with pytest.raises(AttributeError):
            context.operation = "other"  # type: ignore[misc]

    def test_to_dict(self) -> None:
        context = ErrorContext(operation="preload", resource="img.webp")

        assert context.to_dict() == {
            "operation": "preload",
            "resource": "img.webp",
            "additional_data": {},
        }

    def test_to_dict_skips_unset_fields(self) -> None:
        assert ErrorContext(resource="img.webp").to_dict() == {"resource": "img.webp", "additional_data": {}}


class TestLarderError:
    """Base exception behaviour."""

    def test_str_and_attributes(self) -> None:
        original = ValueError("bad")
        error = LarderError(ErrorCode.CACHE_ERROR, "Cache broke", original_error=original)

        assert str(error) == "CACHE_ERROR: Cache broke"
        assert error.code is ErrorCode.CACHE_ERROR
        assert error.original_error is original
        assert isinstance(error.context, ErrorContext)

    def test_to_dict(self) -> None:
        error = LarderError(
            ErrorCode.NETWORK_ERROR,
            "Timed out",
            ErrorContext(operation="load_resource", resource="a.webp"),
            TimeoutError("slow"),
        )

        assert error.to_dict() == {
            "code": "NETWORK_ERROR",
            "message": "Timed out",
            "context": {"operation": "load_resource", "resource": "a.webp", "additional_data": {}},
            "original_error": "slow",
        }

    @pytest.mark.parametrize(
        ("error_class", "parent"),
        [
            (InfrastructureError, LarderError),
            (ApplicationError, LarderError),
            (CacheError, InfrastructureError),
            (CliError, ApplicationError),
        ],
    )
    def test_hierarchy(self, error_class: type[LarderError], parent: type[LarderError]) -> None:
        assert issubclass(error_class, parent)

    def test_cli_error_defaults(self) -> None:
        error = CliError(ErrorCode.CLI_COMMAND_FAILED, "failed")

        assert error.exit_code == 1
        assert error.command is None


class TestErrorFactories:
    def test_create_validation_error(self) -> None:
        error = create_validation_error("too small", field="concurrency", operation="preloader_init")

        assert isinstance(error, ApplicationError)
        assert error.code is ErrorCode.VALIDATION_ERROR
        assert error.context.operation == "preloader_init"
        assert error.context.additional_data == {"field": "concurrency"}

    def test_create_config_error(self) -> None:
        error = create_config_error("invalid", config_key="cache")

        assert error.code is ErrorCode.CONFIG_ERROR
        assert error.context.additional_data == {"config_key": "cache"}

    def test_create_network_error(self) -> None:
        error = create_network_error("HTTP 503", resource="a.webp", status_code=503)

        assert isinstance(error, InfrastructureError)
        assert error.code is ErrorCode.NETWORK_ERROR
        assert error.context.resource == "a.webp"
        assert error.context.additional_data == {"status_code": 503}

    def test_create_network_error_without_status(self) -> None:
        assert create_network_error("refused").context.additional_data is None

    def test_create_cache_error(self) -> None:
        error = create_cache_error("bad key", key="k", code=ErrorCode.CACHE_SERIALIZATION_ERROR)

        assert isinstance(error, CacheError)
        assert error.code is ErrorCode.CACHE_SERIALIZATION_ERROR
        assert error.context.resource == "k"

    def test_create_cli_error(self) -> None:
        error = create_cli_error("interrupted", command="preload", exit_code=130, code=ErrorCode.CLI_COMMAND_INTERRUPTED)

        assert error.exit_code == 130
        assert error.command == "preload"
        assert error.context.additional_data == {"command": "preload"}
