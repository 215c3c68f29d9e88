from windowscribe.progress import ProgressEstimator, clamp_percent


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_eta_unknown_until_first_window() -> None:
    clock = FakeClock()
    estimator = ProgressEstimator(4, clock=clock)
    estimator.start()
    clock.now += 3.0

    assert estimator.eta_seconds() is None
    assert estimator.percent == 0.0


def test_eta_uses_average_window_time() -> None:
    clock = FakeClock()
    estimator = ProgressEstimator(4, clock=clock)
    estimator.start()

    clock.now += 10.0
    estimator.update(1)
    assert estimator.eta_seconds() == 30
    assert estimator.percent == 25.0

    clock.now += 2.0
    estimator.update(3)
    assert estimator.eta_seconds() == 4

    estimator.update(4)
    assert estimator.eta_seconds() == 0
    assert estimator.percent == 100.0


def test_start_time_is_captured_once() -> None:
    clock = FakeClock()
    estimator = ProgressEstimator(2, clock=clock)
    estimator.update(1)
    clock.now += 5.0
    estimator.start()

    assert estimator.elapsed_seconds == 5.0


def test_clamp_percent() -> None:
    assert clamp_percent(-4.0) == 0.0
    assert clamp_percent(140.0) == 100.0
    assert clamp_percent(float("nan")) == 0.0
