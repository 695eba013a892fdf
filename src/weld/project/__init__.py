
from .loader import CannotLoadProject, IProjectLoader
from .project import Project, TaskContainer, all_projects, all_tasks

__all__ = ['CannotLoadProject', 'IProjectLoader', 'Project', 'TaskContainer', 'all_projects', 'all_tasks']
