import argparse

import numpy as np
import scipy.sparse as scpy
from benchmark import parse_common_args

parser = argparse.ArgumentParser()
parser.add_argument("-n", type=int, default=1000)
parser.add_argument("-i", type=int, default=25)
parser.add_argument("-nnz-per-row", type=int, default=11)
parser.add_argument("-k", type=int, default=32)
args, _ = parser.parse_known_args()
n = args.n
iters = args.i
nnz_per_row = args.nnz_per_row
_, timer, use_dsparse = parse_common_args()

# Sample a banded pattern with nnz_per_row diagonals.
C = scpy.diags(
    [1] * nnz_per_row,
    [x - (nnz_per_row // 2) for x in range(nnz_per_row)],
    shape=(n, n),
    format="csr",
    dtype=np.float64,
)
rng = np.random.default_rng(0)
a = rng.random((n, args.k))
b = rng.random((args.k, n))

if use_dsparse:
    import dsparse
    from dsparse import Operation, SDDMMAlg

    ctx = dsparse.runtime.default_context
    A = dsparse.from_numpy(a, ctx=ctx)
    B = dsparse.from_numpy(b, ctx=ctx)
    C = dsparse.from_scipy(C, ctx=ctx)
    op = dsparse.SDDMM(
        ctx,
        Operation.NON_TRANSPOSE,
        Operation.NON_TRANSPOSE,
        1.0,
        A,
        B,
        0.0,
        C,
        np.float64,
        SDDMMAlg.DEFAULT,
    )
    buffer = ctx.allocate(op.buffer_size())
    op.preprocess(buffer)
else:
    rows, cols = C.nonzero()


def f():
    if use_dsparse:
        op.compute(buffer)
    else:
        C.data[:] = np.einsum("ij,ji->i", a[rows, :], b[:, cols])


# Run one to warm up the system.
f()

timer.start()
for i in range(iters):
    f()
total = timer.stop() / 1000.0

print(f"Iterations / sec: {iters / total}")
