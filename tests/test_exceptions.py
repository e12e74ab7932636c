from cuecast.exceptions import (
    ConfigurationError,
    CueCastError,
    DependencyMissingError,
    EncoderError,
    ErrorCategory,
    InputValidationError,
    JobStateError,
    ResourceError,
)


def test_defaults_and_labels() -> None:
    err = CueCastError("boom")
    assert err.category == ErrorCategory.RUNTIME
    assert err.exit_code == 1
    assert err.label() == "Runtime error"
    assert str(err) == "boom"


def test_configuration_error_category_and_code() -> None:
    err = ConfigurationError("config oops")
    assert err.category == ErrorCategory.CONFIG
    assert err.exit_code == 2
    assert err.label() == "Configuration error"


def test_dependency_error_category_and_code_passthrough() -> None:
    err = DependencyMissingError("missing", exit_code=9)
    assert err.category == ErrorCategory.DEPENDENCY
    assert err.exit_code == 9
    assert err.label() == "Dependency error"


def test_input_resource_and_encoder_codes() -> None:
    assert (InputValidationError("x").exit_code, InputValidationError("x").label()) == (4, "Input error")
    assert (ResourceError("x").exit_code, ResourceError("x").label()) == (5, "Resource error")
    enc = EncoderError("ffmpeg exit=1", returncode=1)
    assert (enc.exit_code, enc.returncode, enc.label()) == (6, 1, "Encoder error")


def test_job_state_error_is_runtime() -> None:
    err = JobStateError("illegal")
    assert isinstance(err, CueCastError)
    assert err.category == ErrorCategory.RUNTIME
