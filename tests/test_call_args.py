from loaderkit import Stream, split_call_args, through


def step(value):
    return value


def done(err, value=None):
    return None


def test_trailing_loaders_are_split_from_data():
    call = split_call_args(["path", {"opt": 1}, step, [step]], "sync")

    assert call.data == ("path", {"opt": 1})
    assert call.extra == (step, [step])
    assert call.done is None


def test_first_argument_is_always_data():
    call = split_call_args([step], "sync")

    assert call.data == (step,)
    assert call.extra == ()


def test_scan_stops_at_the_first_plain_value():
    call = split_call_args(["a", step, "b", step], "sync")

    assert call.data == ("a", step, "b")
    assert call.extra == (step,)


def test_async_uses_the_last_loader_as_completion_callback():
    call = split_call_args(["path", step, done], "async")

    assert call.data == ("path",)
    assert call.extra == (step,)
    assert call.done is done


def test_async_without_trailing_loader_has_no_callback():
    call = split_call_args(["path", "other"], "async")

    assert call.data == ("path", "other")
    assert call.done is None


def test_streams_count_as_loaders():
    stream = through(lambda record, push: push(record))
    call = split_call_args(["x", stream], "stream")

    assert isinstance(call.extra[0], Stream)


def test_input_sequence_is_not_mutated():
    args = ["path", step]
    split_call_args(args, "sync")

    assert args == ["path", step]


def test_empty_arguments():
    call = split_call_args([], "sync")

    assert call.data == ()
    assert call.extra == ()
