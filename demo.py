#!/usr/bin/env python3
"""
Demo script for Event Sheet Core functionality.

This script demonstrates the key features of the event sheet:
1. Building a project with properties, events, conditions and actions
2. Compiling the project into a module class
3. Rejected moves and undo/redo
4. Saving and reloading the project document
"""

import logging
import tempfile

from event_sheet_core import (
    EventSheetSession, EventKind, LogicOperator, PropertyType,
    save_project_file, load_project_file,
)


def build_session():
    """Build a small player-controller project."""
    session = EventSheetSession()
    session.set_project_info(name="Player Controller", namespace="Demo",
                             description="Moves with WASD and draws a ring of dots")

    session.add_property("Move Speed", PropertyType.NUMBER, 120,
                         description="Pixels per second", style={'min': 0, 'max': 500, 'step': 10})
    session.add_property("Dot Color", PropertyType.COLOR, "#ff8800", style={'group': 'Appearance'})
    session.add_property("Dot Count", PropertyType.NUMBER, 8, style={'group': 'Appearance'})

    loop = session.add_event('loop')
    right = session.add_element(loop.id, 'conditions', 'keyDown', params={'key': 'd'})
    session.add_element(loop.id, 'conditions', 'keyDown', params={'key': 'shift'})
    session.add_element(loop.id, 'actions', 'move', params={'x': 'this.moveSpeed', 'y': 0})

    branch = session.add_element(loop.id, 'conditions', 'ifCondition')
    session.add_element(branch.id, 'conditions', 'keyPressed', params={'key': 'space'})
    session.add_element(branch.id, 'actions', 'log', params={'message': 'jump'})
    session.add_element(branch.id, 'elseActions', 'addToProperty',
                        params={'property': 'this.idleTime', 'amount': 1, 'useDeltaTime': True})

    draw = session.add_event('draw')
    ring = session.add_element(draw.id, 'actions', 'forLoop', params={'end': 'this.dotCount'})
    session.add_element(ring.id, 'actions', 'drawCircle', params={
        'x': 'Math.cos(i) * 40', 'y': 'Math.sin(i) * 40', 'radius': 4, 'color': '#ff8800',
    })

    jump = session.add_event('jump', EventKind.CUSTOM, 'height')
    session.add_element(jump.id, 'actions', 'setProperty', params={'property': 'this.velocityY', 'value': '-height'})

    return session, right, ring


def demo_generate(session):
    print("=== Demo 1: Generated Module ===")
    code = session.generate_code()
    print("-" * 40)
    print(code)
    print("-" * 40)
    validation = session.validate_code()
    print(f"Code is valid: {validation['is_valid']}")
    if validation['warnings']:
        print(f"Warnings: {validation['warnings']}")


def demo_moves_and_history(session, condition, ring):
    print("\n=== Demo 2: Moves and Undo/Redo ===")
    loop = session.project.events[0]

    moved = session.move_element(ring.id, ring.id, 'actions')
    print(f"Move For loop into itself accepted: {moved}")

    moved = session.move_element(condition.id, loop.id, 'actions')
    print(f"Move condition into actions accepted: {moved}")

    session.set_logic_operator(loop.id, LogicOperator.OR)
    print(f"Loop operator now: {session.project.events[0].logic_operator.value}")
    session.undo()
    print(f"After undo: {session.project.events[0].logic_operator.value}")
    session.redo()
    print(f"After redo: {session.project.events[0].logic_operator.value}")


def demo_persistence(session):
    print("\n=== Demo 3: Save and Load ===")
    with tempfile.TemporaryDirectory() as directory:
        path = save_project_file(session.project, directory)
        print(f"Saved to {path}")
        project = load_project_file(path)
        print(f"Reloaded {project.name!r}: {len(project.events)} events, "
              f"{len(project.properties)} properties")
        same = EventSheetSession(project).generate_code() == session.generate_code()
        print(f"Reloaded project compiles identically: {same}")


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    session, condition, ring = build_session()
    demo_generate(session)
    demo_moves_and_history(session, condition, ring)
    demo_persistence(session)
