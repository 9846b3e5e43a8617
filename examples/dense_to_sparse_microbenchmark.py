import argparse

import numpy as np
import scipy.sparse as scpy
from benchmark import parse_common_args

parser = argparse.ArgumentParser()
parser.add_argument("-n", type=int, default=1000)
parser.add_argument("-i", type=int, default=25)
parser.add_argument("-density", type=float, default=0.01)
parser.add_argument(
    "-format", choices=["csr", "csc", "coo"], default="csr"
)
args, _ = parser.parse_known_args()
n = args.n
iters = args.i
_, timer, use_dsparse = parse_common_args()

rng = np.random.default_rng(0)
a = rng.random((n, n))
a[rng.random((n, n)) >= args.density] = 0.0

if use_dsparse:
    import dsparse
    from dsparse import DenseToSparseAlg, Format

    ctx = dsparse.runtime.default_context
    A = dsparse.from_numpy(a, ctx=ctx)
    fmt = Format[args.format.upper()]


def f():
    if use_dsparse:
        B = dsparse.empty_like_dense(A, fmt, ctx=ctx)
        buffer = ctx.allocate(dsparse.dense_to_sparse_buffer_size(ctx, A, B))
        dsparse.dense_to_sparse_analysis(
            ctx, A, B, DenseToSparseAlg.DEFAULT, buffer
        )
        dsparse.attach_nnz_arrays(B, ctx=ctx)
        dsparse.dense_to_sparse_convert(
            ctx, A, B, DenseToSparseAlg.DEFAULT, buffer
        )
    else:
        scpy.csr_array(a).asformat(args.format)


# Run one to warm up the system.
f()

timer.start()
for i in range(iters):
    f()
total = timer.stop() / 1000.0

print(f"Iterations / sec: {iters / total}")
