# meshbridge

meshbridge builds three.js scene descriptions in Python and sends them to a
browser-based scene viewer. A bridge accepts drawing commands on a ZeroMQ REP
socket, keeps a cached copy of the scene tree, and forwards every command to
the browsers connected over a websocket. A browser that connects later is sent
the whole cached scene first, so it shows the same picture.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Viewer assets

The web server serves the JavaScript viewer from the directory returned by
`meshbridge.servers.utils.viewer_assets_dir()`, and the `get_scene` command
inlines `main.min.js` from that directory. The package does not ship these
files. To clone the viewer's repository at a given ref, build it with `npm`
and copy its `dist` output into place (this needs `git` and `npm` on your
`PATH`), run:

```
meshbridge-refresh-assets --repo-url <git repository> --ref <branch|tag|commit> --out <directory>
```

`--repo-url` is required; `--ref` defaults to `master` and `--out` to
`viewer_assets/dist` relative to the current directory. Point `--out` at the
directory that `viewer_assets_dir()` returns to have the server use the
result. `meshbridge-refresh-assets --help` lists the options.

## Drawing a scene

```python
import math

from meshbridge.geometry.materials import MeshBasicMaterial
from meshbridge.geometry.objects import mesh
from meshbridge.geometry.shapes import Box
from meshbridge.viewer_window import ViewerWindow

theta = math.pi / 4
rotation = [
    [math.cos(theta), -math.sin(theta), 0.0, 0.0],
    [math.sin(theta), math.cos(theta), 0.0, 0.0],
    [0.0, 0.0, 1.0, 0.0],
    [0.0, 0.0, 0.0, 1.0],
]

with ViewerWindow.create(web_port=7000) as window:
    window.open()  # opens the browser and waits for its websocket

    vis = window.visualizer()
    vis.at("Background").set_property("top_color", [1.0, 0.0, 0.0])

    material = MeshBasicMaterial()
    material.color = 0xFF0000
    cube = vis.at("cube")
    cube.set_object(mesh(Box((1.0, 1.0, 1.0)), material))
    cube.set_transform(rotation)
```

`ViewerWindow.create()` without a port reserves a free HTTP port. A
`Visualizer` addresses one path in the scene tree. `at` and `at_path` give a
visualizer further down the tree; `set_object`, `set_transform`,
`set_property` and `delete` act on that path. `set_transform` takes a 4x4
matrix and raises `ValueError` for any other shape.

Passing a bare geometry to `set_object` wraps it in a mesh with a default
`MeshPhongMaterial`.

### What can be drawn

* Geometries in `meshbridge.geometry.shapes`: `Box`, `Sphere`, `Ellipsoid`,
  `Cylinder`, `Plane`, `PointsGeometry`, `TriangularMeshGeometry`, and mesh
  files through `ObjMeshGeometry`, `DaeMeshGeometry` and `StlMeshGeometry`.
  Each mesh-file class can be built from a path (`from_file`) or a readable
  stream (`from_reader`).
* Materials and textures in `meshbridge.geometry.materials`:
  `MeshBasicMaterial`, `MeshLambertMaterial`, `MeshPhongMaterial`,
  `MeshToonMaterial`, `LineBasicMaterial`, `PointsMaterial`, `ImageTexture`,
  `GenericTexture`, `TextTexture` and `PngImage`.
* Scene objects in `meshbridge.geometry.objects`: `mesh`, `points`, `line`,
  `line_segments`, `line_loop`, and the ready-made `point_cloud`,
  `scene_text` and `triad`. `OrthographicCamera` and `PerspectiveCamera`
  describe cameras.

Every object has a `lower()` method that returns the plain dictionary sent to
the viewer.

## Running the bridge

`MeshcatWebServerApplication.create()` from `meshbridge.app` builds the web
server (the viewer under `/static/`, a websocket on `/` and `/ws`, and
`/health`) together with a `ZeroMQWebsocketBridge` bound to the first free
port from 6000. `start()` runs both on background threads and `stop()` shuts
them down. Any ZeroMQ REQ client can then drive the scene with the
three-frame commands `set_object`, `set_transform`, `set_property`,
`set_animation`, `delete`, `set_target` and `capture_image` (command, path,
msgpack payload), and with the single-frame commands `url`, `wait` and
`get_scene`. `get_scene` replies with a standalone HTML page that contains the
whole current scene.

`meshbridge.servers.start.start_zmq_server_in_thread()` runs only the bridge,
without a web server, on a daemon thread.

To send commands to a bridge that is already running elsewhere, use
`ViewerWindow.remote(web_url, zmq_url)`.

## What is not included

There is no command that starts the server, and no demo programs: the server
is started from Python as shown above. The only command installed is
`meshbridge-refresh-assets`.