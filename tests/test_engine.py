# tests/test_engine.py
import numpy as np, pytest
import mtspect
from mtspect import (InvalidParameter, MultitaperWarning, TaperConcentrationWarning,
                     multitaper_spectrogram, resolve_params)

FS = 200.0


def _tone(seconds=10.0, freq=20.0, fs=FS):
    t = np.arange(int(seconds * fs)) / fs
    return np.sin(2 * np.pi * freq * t)


@pytest.mark.parametrize("weighting", ["unity", "eigen", "adapt"])
def test_pure_tone_scenario(weighting):
    spect, stimes, sfreqs = multitaper_spectrogram(_tone(), FS, 2, 1, 3, 5,
                                                   weighting=weighting)
    assert spect.shape == (9, 201)
    assert stimes.shape == (9,) and sfreqs.shape == (201,)
    np.testing.assert_allclose(stimes, np.arange(1, 10))
    df = sfreqs[1] - sfreqs[0]
    peaks = sfreqs[np.argmax(spect, axis=1)]
    assert np.all(np.abs(peaks - 20.0) <= df)
    assert np.all(spect >= 0)


def test_idempotent():
    x = np.random.default_rng(3).standard_normal(3000)
    a = multitaper_spectrogram(x, FS, 2, 0.5, 3, 5, weighting="adapt")
    b = multitaper_spectrogram(x, FS, 2, 0.5, 3, 5, weighting="adapt")
    for u, v in zip(a, b):
        np.testing.assert_array_equal(u, v)


def test_axes_strictly_increasing():
    _, stimes, sfreqs = multitaper_spectrogram(_tone(), FS, 1.5, 0.25, 2, 3)
    assert np.all(np.diff(stimes) > 0)
    assert np.all(np.diff(sfreqs) > 0)


def test_white_noise_psd_level():
    fs = 100.0
    x = np.random.default_rng(7).standard_normal(int(120 * fs))
    spect, _, _ = multitaper_spectrogram(x, fs, 2, 2, 3, 5, detrend="off")
    # one-sided PSD of unit-variance white noise is 2/fs away from DC/Nyquist
    np.testing.assert_allclose(spect[:, 1:-1].mean(), 2 / fs, rtol=0.05)


def test_frequency_range_selects_columns():
    x = _tone()
    full, _, f_full = multitaper_spectrogram(x, FS, 2, 1, 3, 5)
    part, _, f_part = multitaper_spectrogram(x, FS, 2, 1, 3, 5, 0, [10, 30])
    keep = (f_full >= 10) & (f_full <= 30)
    np.testing.assert_array_equal(f_part, f_full[keep])
    np.testing.assert_array_equal(part, full[:, keep])


def test_nyquist_clipped_with_warning():
    with pytest.warns(MultitaperWarning):
        _, _, sfreqs = multitaper_spectrogram(_tone(), FS, 2, 1, 3, 5, 0, [0, 150])
    assert sfreqs[-1] == 100.0


def test_parallel_matches_serial():
    x = np.random.default_rng(5).standard_normal(4000)
    serial = multitaper_spectrogram(x, FS, 1, 0.1, 2.5, 4, weighting="adapt")
    pooled = multitaper_spectrogram(x, FS, 1, 0.1, 2.5, 4, weighting="adapt",
                                    n_jobs=3, block_size=7)
    for u, v in zip(serial, pooled):
        np.testing.assert_allclose(u, v, rtol=1e-12, atol=0)


def test_unpadded_by_default():
    spect, _, sfreqs = multitaper_spectrogram(_tone(), FS, 2, 1, 3, 5)
    assert spect.shape[1] == 400 // 2 + 1
    assert sfreqs[1] == FS / 400


def test_min_nfft_and_pow2():
    spect, _, _ = multitaper_spectrogram(_tone(), FS, 2, 1, 3, 5, 2000)
    assert spect.shape[1] == 1001
    spect, _, sfreqs = multitaper_spectrogram(_tone(), FS, 2, 1, 3, 5, pow2=True)
    assert spect.shape[1] == 257 and sfreqs[1] == FS / 512
    spect, _, _ = multitaper_spectrogram(_tone(), FS, 2, 1, 3, 5, 600, pow2=True)
    assert spect.shape[1] == 513


def test_more_tapers_than_bandwidth_allows():
    with pytest.warns(TaperConcentrationWarning):
        spect, _, _ = multitaper_spectrogram(_tone(), FS, 2, 1, 2, 8)
    assert spect.shape == (9, 201)


def test_step_longer_than_signal():
    with pytest.raises(InvalidParameter):
        multitaper_spectrogram(_tone(0.5), FS, 0.25, 1.0, 2, 3)


def test_window_longer_than_signal():
    x = _tone(0.5)
    with pytest.raises(InvalidParameter):
        multitaper_spectrogram(x, FS, 2, 0.25, 3, 5)
    spect, stimes, _ = multitaper_spectrogram(x, FS, 2, 0.25, 3, 5, pad_trailing=True)
    assert spect.shape == (1, 201)
    np.testing.assert_allclose(stimes, [1.0])


def test_step_longer_than_signal_with_padding():
    x = _tone(0.5)
    spect, stimes, _ = multitaper_spectrogram(x, FS, 2, 2, 3, 5, pad_trailing=True)
    assert spect.shape == (1, 201)
    np.testing.assert_allclose(stimes, [1.0])


def test_padded_window_detrends_real_samples_only():
    spect, _, _ = multitaper_spectrogram(np.ones(300), 100.0, 2, 1, 3, 5,
                                         pad_trailing=True)
    assert spect.shape[0] == 3
    np.testing.assert_allclose(spect, 0.0, atol=1e-20)


def test_zero_signal_gives_zero_spectrogram():
    spect, _, _ = multitaper_spectrogram(np.zeros(2000), FS, 2, 1, 3, 5, weighting="adapt")
    assert spect.shape == (9, 201) and not spect.any()


def test_complex_signal_is_twosided():
    t = np.arange(2000) / FS
    z = np.exp(2j * np.pi * -30.0 * t)
    spect, _, sfreqs = multitaper_spectrogram(z, FS, 2, 1, 3, 5)
    assert spect.shape == (9, 400) and sfreqs[-1] < FS
    peaks = sfreqs[np.argmax(spect, axis=1)]
    assert np.all(np.abs(peaks - (FS - 30.0)) <= sfreqs[1])


def test_resolve_params_defaults():
    p = resolve_params(_tone(), FS, 2, 1, 3)
    assert (p.n_window, p.n_step, p.n_tapers, p.nfft) == (400, 200, 5, 400)
    assert p.frequency_range == (0.0, 100.0)
    assert (p.weighting, p.detrend, p.sides) == ("unity", "linear", "onesided")
    assert p.spectral_resolution == 3.0


def test_window_rounding_warns():
    with pytest.warns(MultitaperWarning):
        p = resolve_params(_tone(), FS, 0.1234, 0.1, 2)
    assert p.n_window == 25


@pytest.mark.parametrize("kwargs", [
    dict(fs=0), dict(fs=-5), dict(window_length=0), dict(window_step=-1),
    dict(window_length=0.001), dict(time_bandwidth=0), dict(time_bandwidth=300),
    dict(num_tapers=0), dict(num_tapers=2.5), dict(min_nfft=-1),
    dict(frequency_range=[30, 10]), dict(frequency_range=[-1, 10]),
    dict(frequency_range=[10]), dict(frequency_range=[100.1, 100.2]),
    dict(weighting="median"), dict(detrend="quadratic"),
])
def test_invalid_parameters(kwargs):
    args = dict(data=_tone(), fs=FS, window_length=2, window_step=1, time_bandwidth=3)
    args.update(kwargs)
    with pytest.raises(InvalidParameter):
        multitaper_spectrogram(**args)


@pytest.mark.parametrize("data", [np.zeros((3, 400)), np.array([]),
                                  np.r_[np.zeros(500), np.nan, np.zeros(500)]])
def test_invalid_data(data):
    with pytest.raises(InvalidParameter):
        multitaper_spectrogram(data, FS, 1, 1, 2)


def test_column_vector_accepted():
    x = _tone()
    a = multitaper_spectrogram(x[:, None], FS, 2, 1, 3, 5)[0]
    np.testing.assert_array_equal(a, multitaper_spectrogram(x, FS, 2, 1, 3, 5)[0])


def test_verbose(capsys):
    mtspect.multitaper_spectrogram(_tone(), FS, 2, 1, 3, 5, verbose=True)
    out = capsys.readouterr().out
    assert "Multitaper Spectrogram Properties" in out
    assert "NFFT: 400" in out
    assert "compute time" in out
