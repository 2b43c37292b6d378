"""
Unit tests for undo/redo history.
"""

from hypothesis import given, settings, strategies as st
from event_sheet_core.history import HistoryManager, ProjectSnapshot
from event_sheet_core.models import Project, Property, EventNode, ElementNode
from event_sheet_core.persistence import project_to_document


def document(project):
    return project_to_document(project, created_at=0)


class TestProjectSnapshot:
    """Test cases for ProjectSnapshot class."""

    def test_capture_is_independent(self):
        """Test later edits do not leak into a snapshot."""
        project = Project(events=[EventNode(actions=[ElementNode(type='log', params={'message': 'a'})])],
                          properties=[Property("speed")])
        snapshot = ProjectSnapshot.capture(project)
        project.events[0].actions[0].params['message'] = 'b'
        project.properties[0].name = 'pace'
        project.name = 'Renamed'
        assert snapshot.events[0].actions[0].params['message'] == 'a'
        assert snapshot.properties[0].name == 'speed'
        assert snapshot.project_name == 'NewModule'

    def test_apply_keeps_snapshot_intact(self):
        """Test restoring installs copies, not the stored objects."""
        project = Project(events=[EventNode()])
        snapshot = ProjectSnapshot.capture(project)
        snapshot.apply_to(project)
        assert project.events[0] is not snapshot.events[0]
        project.events[0].name = 'draw'
        assert snapshot.events[0].name == 'start'


class TestHistoryManager:
    """Test cases for HistoryManager class."""

    def setup_method(self):
        self.project = Project()
        self.history = HistoryManager(self.project)

    def test_empty_stacks(self):
        """Test undo and redo are no-ops when empty."""
        assert self.history.undo() is False
        assert self.history.redo() is False
        assert not self.history.can_undo and not self.history.can_redo

    def test_undo_redo_round_trip(self):
        """Test undo restores and redo reapplies."""
        before = document(self.project)
        self.history.commit()
        self.project.events.append(EventNode(name='loop'))
        after = document(self.project)

        assert self.history.undo() is True
        assert document(self.project) == before
        assert self.history.can_redo
        assert self.history.redo() is True
        assert document(self.project) == after
        assert self.history.undo_count == 1 and self.history.redo_count == 0

    def test_commit_clears_redo(self):
        """Test a new edit discards the redo stack."""
        self.history.commit()
        self.project.name = "A"
        self.history.undo()
        assert self.history.can_redo
        self.history.commit()
        self.project.name = "B"
        assert not self.history.can_redo

    def test_bounded(self):
        """Test only the most recent fifty steps are kept."""
        for i in range(60):
            self.history.commit()
            self.project.name = f"step{i}"
        assert self.history.undo_count == 50
        while self.history.undo():
            pass
        assert self.project.name == "step9"

    def test_custom_bound(self):
        """Test the bound is configurable."""
        history = HistoryManager(self.project, max_undo_steps=3)
        for i in range(5):
            history.commit()
            self.project.name = str(i)
        assert history.undo_count == 3

    def test_clear(self):
        """Test clearing both stacks."""
        self.history.commit()
        self.history.undo()
        self.history.clear()
        assert self.history.undo_count == 0 and self.history.redo_count == 0


# Property-based tests
@settings(max_examples=30)
@given(st.lists(st.sampled_from(['start', 'loop', 'draw', 'preload']), min_size=1, max_size=12))
def test_undo_all_then_redo_all(names):
    """Property test: undoing every edit restores the start, redoing restores the end."""
    project = Project()
    history = HistoryManager(project)
    states = [document(project)]
    for name in names:
        history.commit()
        project.events.append(EventNode(name=name))
        states.append(document(project))

    for expected in reversed(states[:-1]):
        assert history.undo()
        assert document(project) == expected
    assert not history.undo()

    for expected in states[1:]:
        assert history.redo()
        assert document(project) == expected
    assert not history.redo()
