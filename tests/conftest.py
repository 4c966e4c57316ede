from pathlib import Path
from typing import Sequence

import numpy as np
import onnx
import pytest
from onnx import TensorProto, helper, numpy_helper


def write_linear_model(path: Path, weights: Sequence[Sequence[float]], n_inputs: int = 3) -> Path:
    """
    Save a MatMul-only ONNX model: (1, n_inputs) @ W -> (1, n_outputs).
    """
    w = np.asarray(weights, dtype=np.float32).reshape(n_inputs, -1)
    features = helper.make_tensor_value_info("features", TensorProto.FLOAT, [1, n_inputs])
    risk = helper.make_tensor_value_info("risk", TensorProto.FLOAT, [1, w.shape[1]])
    node = helper.make_node("MatMul", ["features", "W"], ["risk"])
    graph = helper.make_graph(
        [node], "risk_linear", [features], [risk], initializer=[numpy_helper.from_array(w, name="W")]
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    onnx.save(model, str(path))
    return path


@pytest.fixture
def identity_model_path(tmp_path: Path) -> Path:
    # score = normalized age
    return write_linear_model(tmp_path / "identity.onnx", [[1.0], [0.0], [0.0]])


@pytest.fixture
def two_output_model_path(tmp_path: Path) -> Path:
    return write_linear_model(tmp_path / "two_out.onnx", [[1.0, 0.0], [0.0, 1.0], [0.0, 0.0]])


@pytest.fixture
def four_input_model_path(tmp_path: Path) -> Path:
    return write_linear_model(tmp_path / "four_in.onnx", [[1.0], [0.0], [0.0], [0.0]], n_inputs=4)
