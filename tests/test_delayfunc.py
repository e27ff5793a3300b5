import logging

from ztools.delayfunc import DelayFunc


def say_hello(*message):
    say_hello.seen.append(f"{message[0]} {message[1]}")


say_hello.seen = []


def test_delayfunc_call_passes_args():
    say_hello.seen.clear()
    df = DelayFunc(say_hello, ["hello", "zinx!"])
    df.call()
    assert say_hello.seen == ["hello zinx!"]


def test_delayfunc_str():
    df = DelayFunc(say_hello, ["hello", "zinx!"])
    assert str(df) == "{DelayFun:say_hello, args:[hello zinx!]}"


def test_delayfunc_call_logs_exception(caplog):
    def boom():
        raise RuntimeError("boom")

    df = DelayFunc(boom)
    with caplog.at_level(logging.ERROR, logger="ztools.delayfunc"):
        assert df.call() is None
    assert "boom" in caplog.text
    assert "Call err" in caplog.text


def test_delayfunc_args_are_tuple():
    df = DelayFunc(say_hello, iter([1, 2]))
    assert df.args == (1, 2)