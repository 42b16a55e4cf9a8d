import argparse, pathlib as pl
from .dataio import load_signal, save_spectrogram
from .engine import multitaper_spectrogram
from .errors import InvalidParameter
from .spect import nanpow2db
from .weights import WEIGHTINGS

def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="python -m mtspect",
                                description="Multitaper Spectrogram")
    p.add_argument("signal_file", type=pl.Path, help=".mat, .npy, .txt or .csv signal")
    p.add_argument("--fs", type=float, required=True, help="sampling rate [Hz]")
    p.add_argument("--window", type=float, nargs=2, default=[5.0, 1.0],
                   metavar=("LEN", "STEP"), help="window length and step [s]")
    p.add_argument("--tw", type=float, default=5.0, help="time-half-bandwidth product")
    p.add_argument("-k",  type=int,   default=None, help="# tapers (default floor(2*tw)-1)")
    p.add_argument("--min-nfft", type=int, default=0, help="minimum FFT length")
    p.add_argument("--freq-range", type=float, nargs=2, default=None,
                   metavar=("FMIN", "FMAX"), help="frequency range kept [Hz]")
    p.add_argument("--weighting", choices=WEIGHTINGS, default="unity")
    p.add_argument("--detrend", choices=("linear", "constant", "off"), default="linear")
    p.add_argument("--pad-trailing", action="store_true",
                   help="zero-pad and keep the last partial window")
    p.add_argument("--jobs", type=int, default=1, help="worker threads")
    p.add_argument("--key", default="data", help="variable name inside a .mat file")
    p.add_argument("--channel", type=int, default=0)
    p.add_argument("--db", action="store_true", help="store power in dB")
    p.add_argument("-o", "--output", type=pl.Path, default=None,
                   help=".npz or .mat output (default: <signal_file>_mts.npz)")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args(argv)

    out = args.output or args.signal_file.with_name(args.signal_file.stem + "_mts.npz")
    try:
        y = load_signal(args.signal_file, key=args.key, channel=args.channel)
        spect, stimes, sfreqs = multitaper_spectrogram(
            y, args.fs, args.window[0], args.window[1], args.tw, args.k,
            args.min_nfft, args.freq_range, args.weighting,
            detrend=args.detrend, pad_trailing=args.pad_trailing,
            n_jobs=args.jobs, verbose=args.verbose)
        if args.db:
            spect = nanpow2db(spect)
        save_spectrogram(out, spect, stimes, sfreqs, fs=args.fs,
                         units="dB" if args.db else "power/Hz")
    except InvalidParameter as e:
        p.error(str(e))
    if args.verbose:
        print(f"{spect.shape[0]} windows x {spect.shape[1]} frequencies -> {out}")

if __name__ == "__main__":
    main()
