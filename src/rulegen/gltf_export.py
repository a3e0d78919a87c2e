"""glTF/GLB assembly via pygltflib.

Generated instances map naturally onto glTF: every distinct (source mesh,
colour) pair becomes one glTF mesh, and every instance becomes a node that
references it with its accumulated matrix. Geometry is written once per
source mesh no matter how many instances use it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import numpy as np
import pygltflib

from rulegen.errors import ExportError, RulegenError
from rulegen.expansion import OutputMesh
from rulegen.mesh import Mesh

logger = logging.getLogger(__name__)


def export_gltf(meshes: Iterable[OutputMesh], output_path: Path) -> int:
    """Export generated meshes to a GLB file. Returns the number of instance nodes."""
    try:
        gltf = build_gltf(meshes)
        gltf.save_binary(str(output_path))
    except RulegenError:
        raise
    except Exception as e:
        raise ExportError(f"Failed to export glTF: {e}") from e
    node_count = len(gltf.nodes)
    logger.info("Wrote %d nodes (%d meshes) to %s", node_count, len(gltf.meshes), output_path)
    return node_count


def build_gltf(meshes: Iterable[OutputMesh]) -> pygltflib.GLTF2:
    """Build the glTF2 structure for a stream of generated meshes."""
    gltf = pygltflib.GLTF2(
        scene=0,
        scenes=[pygltflib.Scene(nodes=[])],
        nodes=[],
        meshes=[],
        accessors=[],
        bufferViews=[],
        buffers=[],
        materials=[],
    )

    blob_data = bytearray()
    geometry_map: dict[Mesh, pygltflib.Attributes | None] = {}
    index_map: dict[Mesh, int] = {}
    material_map: dict[str, int] = {}
    mesh_map: dict[tuple[Mesh, str], int] = {}
    scene_nodes: list[int] = []

    for output in meshes:
        source = output.mesh
        if source not in geometry_map:
            geometry_map[source] = _write_geometry(gltf, blob_data, source, index_map)
        attributes = geometry_map[source]
        if attributes is None:
            continue

        color = output.color
        color_hex = color.hex
        if color_hex not in material_map:
            material_map[color_hex] = len(gltf.materials)
            r, g, b = color.to_rgb()
            gltf.materials.append(
                pygltflib.Material(
                    name=color_hex,
                    pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(
                        baseColorFactor=[r, g, b, 1.0],
                        metallicFactor=0.0,
                        roughnessFactor=1.0,
                    ),
                    doubleSided=True,
                )
            )

        key = (source, color_hex)
        if key not in mesh_map:
            mesh_map[key] = len(gltf.meshes)
            gltf.meshes.append(
                pygltflib.Mesh(
                    name=f"{source.name or 'mesh'}{color_hex}",
                    primitives=[
                        pygltflib.Primitive(
                            attributes=attributes,
                            indices=index_map[source],
                            material=material_map[color_hex],
                        )
                    ],
                )
            )

        node_idx = len(gltf.nodes)
        gltf.nodes.append(
            pygltflib.Node(
                mesh=mesh_map[key],
                # glTF matrices are column-major
                matrix=output.transform.spatial.T.flatten().tolist(),
            )
        )
        scene_nodes.append(node_idx)

    gltf.scenes[0].nodes = scene_nodes
    gltf.buffers = [pygltflib.Buffer(byteLength=len(blob_data))]
    gltf.set_binary_blob(bytes(blob_data))
    return gltf


def triangulate(faces: Iterable[tuple[int, ...]]) -> np.ndarray:
    """Fan-triangulate 1-based polygon faces into 0-based triangle indices."""
    indices: list[int] = []
    for face in faces:
        for k in range(1, len(face) - 1):
            indices.extend([face[0] - 1, face[k] - 1, face[k + 1] - 1])
    return np.array(indices, dtype=np.uint32)


def _write_geometry(
    gltf: pygltflib.GLTF2,
    blob_data: bytearray,
    source: Mesh,
    index_map: dict[Mesh, int],
) -> pygltflib.Attributes | None:
    """Write one source mesh's buffers. Returns None for meshes with nothing to draw."""
    indices = triangulate(source.faces)
    if source.vertex_count == 0 or len(indices) == 0:
        logger.debug("Skipping empty mesh %r", source)
        return None

    attributes = pygltflib.Attributes(
        POSITION=_write_buffer_view_and_accessor(
            gltf,
            blob_data,
            source.vertices.astype(np.float32),
            pygltflib.FLOAT,
            pygltflib.VEC3,
            pygltflib.ARRAY_BUFFER,
            include_min_max=True,
        )
    )
    if source.normals is not None:
        attributes.NORMAL = _write_buffer_view_and_accessor(
            gltf,
            blob_data,
            source.normals.astype(np.float32),
            pygltflib.FLOAT,
            pygltflib.VEC3,
            pygltflib.ARRAY_BUFFER,
        )
    index_map[source] = _write_buffer_view_and_accessor(
        gltf,
        blob_data,
        indices,
        pygltflib.UNSIGNED_INT,
        pygltflib.SCALAR,
        pygltflib.ELEMENT_ARRAY_BUFFER,
    )
    return attributes


def _write_buffer_view_and_accessor(
    gltf: pygltflib.GLTF2,
    blob_data: bytearray,
    data_array: np.ndarray,
    component_type: int,
    accessor_type: str,
    target: int | None = None,
    *,
    include_min_max: bool = False,
) -> int:
    """Write a buffer view and accessor, returning the accessor index."""
    offset = len(blob_data)
    data_bytes = data_array.tobytes()
    blob_data.extend(data_bytes)

    bv_idx = len(gltf.bufferViews)
    bv = pygltflib.BufferView(
        buffer=0,
        byteOffset=offset,
        byteLength=len(data_bytes),
    )
    if target is not None:
        bv.target = target
    gltf.bufferViews.append(bv)

    acc_kwargs: dict = {
        "bufferView": bv_idx,
        "byteOffset": 0,
        "componentType": component_type,
        "count": len(data_array),
        "type": accessor_type,
    }
    if include_min_max:
        acc_kwargs["min"] = data_array.min(axis=0).tolist()
        acc_kwargs["max"] = data_array.max(axis=0).tolist()

    acc_idx = len(gltf.accessors)
    gltf.accessors.append(pygltflib.Accessor(**acc_kwargs))
    return acc_idx
