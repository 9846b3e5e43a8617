import argparse

from typing_extensions import Protocol


class Timer(Protocol):
    def start(self):
        ...

    def stop(self):
        """
        Blocks execution until everything before it has completed. Returns the
        duration since the last call to start(), in milliseconds.
        """
        ...


class StreamTimer(Timer):
    def __init__(self, ctx):
        self._ctx = ctx
        self._start_time = None

    def start(self):
        from time import perf_counter_ns

        self._ctx.synchronize()
        self._start_time = perf_counter_ns() / 1000.0

    def stop(self):
        from time import perf_counter_ns

        self._ctx.synchronize()
        end_time = perf_counter_ns() / 1000.0
        return (end_time - self._start_time) / 1000.0


class NumPyTimer(Timer):
    def __init__(self):
        self._start_time = None

    def start(self):
        from time import perf_counter_ns

        self._start_time = perf_counter_ns() / 1000.0

    def stop(self):
        from time import perf_counter_ns

        end_time = perf_counter_ns() / 1000.0
        return (end_time - self._start_time) / 1000.0


def parse_common_args():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--package",
        type=str,
        default="dsparse",
        choices=["dsparse", "scipy"],
    )
    args, _ = parser.parse_known_args()
    if args.package == "dsparse":
        import dsparse

        timer = StreamTimer(dsparse.runtime.default_context)
        use_dsparse = True
    else:
        timer = NumPyTimer()
        use_dsparse = False
    return args.package, timer, use_dsparse
