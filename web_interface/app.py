"""
Flask web interface for the Event Sheet Core.

This provides a REST API over one in-process editor session.
"""

import logging

from flask import Flask, request, jsonify
from flask_cors import CORS

from event_sheet_core.config import EditorSettings, resolve_setting
from event_sheet_core.exceptions import EventSheetError, ProjectLoadError
from event_sheet_core.models import EventKind
from event_sheet_core.session import EventSheetSession


app = Flask(__name__)
CORS(app)

logger = logging.getLogger(__name__)

# Global session
session = EventSheetSession(settings=EditorSettings.from_env())


def _history_state():
    return {
        'canUndo': session.can_undo,
        'canRedo': session.can_redo,
    }


def _error(e, status=400):
    return jsonify({
        'success': False,
        'error': str(e)
    }), status


@app.route('/api/project', methods=['GET'])
def get_project():
    """Get the current project document."""
    try:
        return jsonify({
            'success': True,
            'data': session.to_document(),
            'history': _history_state()
        })
    except Exception as e:
        logger.exception("Failed to export project")
        return _error(e, 500)


@app.route('/api/project', methods=['POST'])
def load_project():
    """Replace the current project with a posted document."""
    try:
        data = request.get_json(silent=True)
        if data is None:
            return _error('No JSON body provided')
        session.load_document(data)
        return jsonify({
            'success': True,
            'data': session.to_document()
        })
    except ProjectLoadError as e:
        logger.error(f"Rejected project document: {e}")
        return _error(e)
    except Exception as e:
        logger.exception("Failed to load project")
        return _error(e, 500)


@app.route('/api/project/new', methods=['POST'])
def new_project():
    """Start over with an empty project."""
    try:
        session.new_project()
        return jsonify({
            'success': True,
            'data': session.to_document()
        })
    except Exception as e:
        return _error(e, 500)


@app.route('/api/code', methods=['GET'])
def get_code():
    """Compile the project into the module class source."""
    try:
        code = session.generate_code()
        return jsonify({
            'success': True,
            'data': {
                'className': session.project.class_name,
                'code': code,
                'validation': session.generator.validate_generated_code(code)
            }
        })
    except Exception as e:
        logger.exception("Code generation failed")
        return _error(e, 500)


@app.route('/api/definitions', methods=['GET'])
def get_definitions():
    """List the condition and action catalogs, optionally filtered by ``q``."""
    try:
        query = request.args.get('q', '').strip()
        if query:
            data = {'results': [definition.to_dict() for definition in session.registry.search(query)]}
        else:
            data = session.registry.to_dict()
        return jsonify({
            'success': True,
            'data': data
        })
    except Exception as e:
        return _error(e, 500)


@app.route('/api/events', methods=['POST'])
def add_event():
    """Add an event."""
    try:
        data = request.get_json(silent=True) or {}
        event = session.add_event(
            name=data.get('name', 'start'),
            kind=EventKind(data.get('kind', EventKind.LIFECYCLE.value)),
            params=data.get('params', ''),
            index=data.get('index'),
        )
        return jsonify({
            'success': True,
            'data': event.to_dict()
        }), 201
    except (EventSheetError, ValueError) as e:
        return _error(e)
    except Exception as e:
        logger.exception("Failed to add event")
        return _error(e, 500)


@app.route('/api/events/<int:index>', methods=['DELETE'])
def delete_event(index):
    """Remove the event at ``index``."""
    try:
        event = session.remove_event(index)
        return jsonify({
            'success': True,
            'data': {'id': event.id}
        })
    except EventSheetError as e:
        return _error(e, 404)
    except Exception as e:
        return _error(e, 500)


@app.route('/api/elements', methods=['POST'])
def add_element():
    """Add a condition or action under an event or element."""
    try:
        data = request.get_json(silent=True) or {}
        for key in ('parentId', 'array', 'type'):
            if not data.get(key):
                return _error(f'{key} is required')
        node = session.add_element(
            data['parentId'], data['array'], data['type'],
            index=data.get('index'), params=data.get('params'),
        )
        return jsonify({
            'success': True,
            'data': node.to_dict()
        }), 201
    except EventSheetError as e:
        return _error(e)
    except Exception as e:
        logger.exception("Failed to add element")
        return _error(e, 500)


@app.route('/api/elements/<node_id>', methods=['PATCH'])
def update_element(node_id):
    """Merge parameter values into an element."""
    try:
        data = request.get_json(silent=True) or {}
        node = session.update_element_params(node_id, data.get('params') or {})
        return jsonify({
            'success': True,
            'data': node.to_dict()
        })
    except EventSheetError as e:
        return _error(e, 404)
    except Exception as e:
        return _error(e, 500)


@app.route('/api/elements/<node_id>/move', methods=['POST'])
def move_element(node_id):
    """Move an element; 409 when the move would break the tree."""
    try:
        data = request.get_json(silent=True) or {}
        moved = session.move_element(
            node_id, data.get('toParentId', ''), data.get('toArray', ''),
            target_index=data.get('index'),
        )
        if not moved:
            return jsonify({
                'success': False,
                'error': f'Move of {node_id} rejected'
            }), 409
        return jsonify({
            'success': True,
            'data': session.to_document()
        })
    except Exception as e:
        logger.exception("Failed to move element")
        return _error(e, 500)


@app.route('/api/elements/<node_id>', methods=['DELETE'])
def delete_element(node_id):
    """Delete an element and its subtree."""
    try:
        if not session.delete_element(node_id):
            return _error(f'No element with id {node_id}', 404)
        return jsonify({
            'success': True,
            'data': {'id': node_id}
        })
    except Exception as e:
        return _error(e, 500)


@app.route('/api/undo', methods=['POST'])
def undo():
    """Undo the last edit."""
    changed = session.undo()
    return jsonify({
        'success': True,
        'data': {'changed': changed, **_history_state()}
    })


@app.route('/api/redo', methods=['POST'])
def redo():
    """Redo the last undone edit."""
    changed = session.redo()
    return jsonify({
        'success': True,
        'data': {'changed': changed, **_history_state()}
    })


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)

    host = resolve_setting('EVENTSHEET_HOST', '127.0.0.1')
    port = int(resolve_setting('EVENTSHEET_PORT', '5003'))

    print("Starting Event Sheet Web Interface...")
    print(f"Access the API at: http://localhost:{port}")

    app.run(debug=True, host=host, port=port)
