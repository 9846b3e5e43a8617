# Copyright 2022 NVIDIA Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import numpy

# Types are numpy dtypes throughout the package. Coordinates handed between
# kernels through scratch memory are always int64, whatever the index type
# of the descriptors involved.
coord_ty = numpy.dtype(numpy.int64)
nnz_ty = numpy.dtype(numpy.int64)
byte_ty = numpy.dtype(numpy.uint8)

int8 = numpy.dtype(numpy.int8)
int32 = numpy.dtype(numpy.int32)
int64 = numpy.dtype(numpy.int64)
float16 = numpy.dtype(numpy.float16)
float32 = numpy.dtype(numpy.float32)
float64 = numpy.dtype(numpy.float64)
complex64 = numpy.dtype(numpy.complex64)
complex128 = numpy.dtype(numpy.complex128)

index_types = (int32, int64)
