"""
mlboard Compiler — Stage Code Templates
========================================
One NodeTemplate per NodeType. The emitter hands each template every node of
its type, in dependency order, and the template writes one fragment:

  emit_group(nodes, writer)
      Default behaviour: emit only the first node (Split, Model, Loss,
      Optimizer and Trainer are single-instance stages; extra nodes of
      those types are ignored).

  emit_inline(node, index, writer)
      Emits the code for a single node. `index` is the node's position
      within its type group.

TEMPLATE_REGISTRY maps every NodeType to its template. Its iteration order is
the order fragments appear in the generated script, independent of where the
nodes sit in the dependency order.

Emitted code targets PyTorch:
    pip install torch
"""

from __future__ import annotations

from typing import Dict, List

from mlboard.core.GraphPrimitives import Node
from mlboard.core.Types import NodeType, Params
from .naming import comment_text, derive_identifier, int_param, number_param, params_comment, py_literal


# ── Code writer ───────────────────────────────────────────────────────────────

class CodeWriter:
    """Simple indented string accumulator."""

    def __init__(self, indent: int = 0):
        self._lines: List[str] = []
        self._indent = indent

    def writeln(self, line: str = "") -> "CodeWriter":
        if line:
            self._lines.append("    " * self._indent + line)
        else:
            self._lines.append("")
        return self

    def blank(self) -> "CodeWriter":
        return self.writeln()

    def comment(self, text: str) -> "CodeWriter":
        return self.writeln(f"# {text}")

    def push(self) -> "CodeWriter":
        self._indent += 1
        return self

    def pop(self) -> "CodeWriter":
        self._indent = max(0, self._indent - 1)
        return self

    def extend(self, lines: List[str]) -> "CodeWriter":
        for line in lines:
            self.writeln(line)
        return self

    def lines(self) -> List[str]:
        return self._lines

    def result(self) -> str:
        return "\n".join(self._lines)


# ── Defaults ──────────────────────────────────────────────────────────────────

DEFAULT_SPLIT: Params = {"train": 0.8, "val": 0.1, "test": 0.1, "shuffle": True}
DEFAULT_LR = 1e-3
DEFAULT_EPOCHS = 3
DEFAULT_BATCH_SIZE = 64

MODEL_CLASS = "GeneratedModel"
MODEL_VAR = "model"
LOSS_VAR = "criterion"
OPTIMIZER_VAR = "optimizer"


# ── Base template ─────────────────────────────────────────────────────────────

class NodeTemplate:
    """
    Base class for stage templates. Subclasses override emit_inline(), and
    emit_group() when every node of the type contributes to the fragment.
    """

    def emit_group(self, nodes: List[Node], writer: CodeWriter) -> None:
        if nodes:
            self.emit_inline(nodes[0], 0, writer)
            writer.blank()

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        pass


# ── Data & transforms ─────────────────────────────────────────────────────────

class DataTemplate(NodeTemplate):

    def emit_group(self, nodes: List[Node], writer: CodeWriter) -> None:
        for i, node in enumerate(nodes):
            self.emit_inline(node, i, writer)
        writer.blank()

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        name = derive_identifier(node.label, "dataset", index)
        writer.comment(f"Data: {comment_text(node.label) or name}")
        writer.writeln(f"{name} = None  # TODO: load your dataset here")
        writer.extend(params_comment(node.params))


class TransformTemplate(NodeTemplate):

    def emit_group(self, nodes: List[Node], writer: CodeWriter) -> None:
        writer.comment("Transforms")
        for i, node in enumerate(nodes):
            self.emit_inline(node, i, writer)
        writer.blank()

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        name = derive_identifier(node.label, "transform", index)
        writer.writeln(f"{name} = nn.Identity()  # TODO: implement transform")
        writer.extend(params_comment(node.params))


class SplitTemplate(NodeTemplate):

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        params = dict(DEFAULT_SPLIT)
        params.update({k: v for k, v in node.params.items() if v is not None})
        writer.comment("Split")
        writer.writeln(
            "train_ds, val_ds, test_ds = None, None, None"
            "  # TODO: split your dataset according to params"
        )
        writer.extend(params_comment(params))


# ── Model, loss, optimizer ────────────────────────────────────────────────────

class ModelTemplate(NodeTemplate):

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        writer.comment(f"Model: {comment_text(node.label) or 'Model'}")
        writer.writeln(f"class {MODEL_CLASS}(nn.Module):")
        writer.push()
        writer.writeln("def __init__(self):")
        writer.push()
        writer.writeln("super().__init__()")
        writer.comment("TODO: build layers based on params")
        writer.writeln(
            "self.net = nn.Sequential(nn.Flatten(), nn.Linear(784, 128), nn.ReLU(), nn.Linear(128, 10))"
        )
        writer.pop()
        writer.blank()
        writer.writeln("def forward(self, x):")
        writer.push()
        writer.writeln("return self.net(x)")
        writer.pop()
        writer.pop()
        writer.blank()
        writer.blank()
        writer.writeln(f"{MODEL_VAR} = {MODEL_CLASS}().to(device)")
        writer.extend(params_comment(node.params))


class LossTemplate(NodeTemplate):

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        writer.comment("Loss")
        writer.writeln(f"{LOSS_VAR} = nn.CrossEntropyLoss()")


class OptimizerTemplate(NodeTemplate):
    """
    Adam over the model parameters. lr is written with repr(), so the default
    1e-3 appears as `lr=0.001`, the same text the board's own export produced.
    """

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        lr = number_param(node.params, "lr", DEFAULT_LR)
        writer.comment("Optimizer")
        writer.writeln(f"{OPTIMIZER_VAR} = optim.Adam({MODEL_VAR}.parameters(), lr={py_literal(lr)})")


# ── Training & evaluation ─────────────────────────────────────────────────────

class TrainerTemplate(NodeTemplate):

    def emit_inline(self, node: Node, index: int, writer: CodeWriter) -> None:
        batch_size = int_param(node.params, "batch_size", DEFAULT_BATCH_SIZE)
        epochs = int_param(node.params, "epochs", DEFAULT_EPOCHS)

        writer.comment("Dataloaders")
        writer.writeln(f"train_loader = DataLoader(train_ds, batch_size={batch_size}, shuffle=True)  # TODO")
        writer.writeln(f"val_loader = DataLoader(val_ds, batch_size={batch_size})  # TODO")
        writer.blank()

        writer.comment("Train loop")
        writer.writeln(f"for epoch in range({epochs}):")
        writer.push()
        writer.writeln(f"{MODEL_VAR}.train()")
        writer.writeln("for x, y in train_loader:")
        writer.push()
        writer.writeln("x, y = x.to(device), y.to(device)")
        writer.writeln(f"{OPTIMIZER_VAR}.zero_grad()")
        writer.writeln(f"out = {MODEL_VAR}(x)")
        writer.writeln(f"loss = {LOSS_VAR}(out, y)")
        writer.writeln("loss.backward()")
        writer.writeln(f"{OPTIMIZER_VAR}.step()")
        writer.pop()
        writer.writeln('print(f"epoch {epoch + 1}: ok")')
        writer.pop()


class MetricTemplate(NodeTemplate):
    """All Metric nodes share one accuracy block."""

    def emit_group(self, nodes: List[Node], writer: CodeWriter) -> None:
        if not nodes:
            return
        writer.comment("Metrics (evaluate on val_loader)")
        writer.writeln(f"{MODEL_VAR}.eval()")
        writer.writeln("correct = 0")
        writer.writeln("total = 0")
        writer.writeln("with torch.no_grad():")
        writer.push()
        writer.writeln("for x, y in val_loader:")
        writer.push()
        writer.writeln("x, y = x.to(device), y.to(device)")
        writer.writeln(f"out = {MODEL_VAR}(x)")
        writer.writeln("pred = out.argmax(dim=1)")
        writer.writeln("correct += (pred == y).sum().item()")
        writer.writeln("total += y.size(0)")
        writer.pop()
        writer.pop()
        writer.writeln('print("val/accuracy:", correct / total if total else 0.0)')
        writer.blank()


class CompositeTemplate(NodeTemplate):
    """Composite nodes only record membership; nothing is emitted."""

    def emit_group(self, nodes: List[Node], writer: CodeWriter) -> None:
        pass


# ── Registry ──────────────────────────────────────────────────────────────────

TEMPLATE_REGISTRY: Dict[NodeType, NodeTemplate] = {
    NodeType.DATA:      DataTemplate(),
    NodeType.TRANSFORM: TransformTemplate(),
    NodeType.SPLIT:     SplitTemplate(),
    NodeType.MODEL:     ModelTemplate(),
    NodeType.LOSS:      LossTemplate(),
    NodeType.OPTIMIZER: OptimizerTemplate(),
    NodeType.TRAINER:   TrainerTemplate(),
    NodeType.METRIC:    MetricTemplate(),
    NodeType.COMPOSITE: CompositeTemplate(),
}

_missing = [t.value for t in NodeType if t not in TEMPLATE_REGISTRY]
if _missing:
    raise RuntimeError(f"No template registered for node type(s): {', '.join(_missing)}")


__all__ = ["CodeWriter", "NodeTemplate", "TEMPLATE_REGISTRY"]
