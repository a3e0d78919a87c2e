"""rulegen: procedural 3D geometry from recursive transformation rules."""

__version__ = "0.1.0"

from rulegen.color import Hsv
from rulegen.compiler import load_rules
from rulegen.config import ExportConfig, MeshGrouping
from rulegen.expansion import OutputMesh, bake, build, generate
from rulegen.gltf_export import export_gltf
from rulegen.mesh import Mesh
from rulegen.obj_export import write_meshes, write_obj
from rulegen.primitives import cube, icosphere, sphere
from rulegen.rule import Producer, Rule
from rulegen.transforms import Tf, Transform, TransformSet, compose, cross, replicate, seq

__all__ = [
    "ExportConfig",
    "Hsv",
    "Mesh",
    "MeshGrouping",
    "OutputMesh",
    "Producer",
    "Rule",
    "Tf",
    "Transform",
    "TransformSet",
    "bake",
    "build",
    "compose",
    "cross",
    "cube",
    "export_gltf",
    "generate",
    "icosphere",
    "load_rules",
    "replicate",
    "seq",
    "sphere",
    "write_meshes",
    "write_obj",
]
