"""Geometries, materials, textures, scene objects and cameras for the viewer."""