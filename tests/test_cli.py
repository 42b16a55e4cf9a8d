# tests/test_cli.py
import numpy as np, pytest
import scipy.io as sio
from mtspect.cli import main
from mtspect.dataio import load_signal, save_spectrogram
from mtspect.errors import InvalidParameter

FS = 200.0


@pytest.fixture
def tone():
    return np.sin(2 * np.pi * 20.0 * np.arange(2000) / FS)


def test_cli_npy_to_npz(tmp_path, tone):
    src = tmp_path / "sig.npy"
    np.save(src, tone)
    main([str(src), "--fs", "200", "--window", "2", "1", "--tw", "3", "-k", "5",
          "--freq-range", "0", "50"])
    res = np.load(tmp_path / "sig_mts.npz")
    assert res["spect"].shape == (9, 101)
    assert res["stimes"].shape == (9,)
    assert float(res["fs"]) == FS


def test_cli_mat_roundtrip_db(tmp_path, tone):
    src, out = tmp_path / "sig.mat", tmp_path / "out.mat"
    sio.savemat(src, {"eeg": np.column_stack([tone, np.zeros_like(tone)])})
    main([str(src), "--fs", "200", "--window", "2", "1", "--tw", "3",
          "--key", "eeg", "--weighting", "adapt", "--db", "-o", str(out)])
    res = sio.loadmat(out, squeeze_me=True)
    assert res["spect"].shape == (9, 201)
    assert abs(res["sfreqs"][np.nanargmax(res["spect"][0])] - 20.0) <= 0.5


def test_cli_reports_bad_parameters(tmp_path, tone, capsys):
    src = tmp_path / "sig.npy"
    np.save(src, tone)
    with pytest.raises(SystemExit) as exc:
        main([str(src), "--fs", "200", "--window", "0", "1"])
    assert exc.value.code == 2
    assert "window length" in capsys.readouterr().err


def test_load_signal_channel_and_crop(tmp_path):
    data = np.column_stack([np.arange(100.0), -np.arange(100.0)])   # samples x chan
    path = tmp_path / "sig.txt"
    np.savetxt(path, data)
    y = load_signal(path, channel=1, fs=10.0, start_s=1.0, stop_s=2.0)
    np.testing.assert_array_equal(y, -np.arange(10.0, 20.0))
    with pytest.raises(InvalidParameter):
        load_signal(path, channel=2)
    with pytest.raises(InvalidParameter):
        load_signal(path, start_s=1.0)


def test_save_rejects_unknown_format(tmp_path):
    with pytest.raises(InvalidParameter):
        save_spectrogram(tmp_path / "out.csv", np.ones((1, 2)), np.ones(1), np.ones(2))
