"""CRUD operation classes and singletons."""

from docflow.boundary.db.CRUD.base_crud import BaseCRUD
from docflow.boundary.db.CRUD.job_crud import JobCRUD, job_crud, merge_namespaced

__all__ = ["BaseCRUD", "JobCRUD", "job_crud", "merge_namespaced"]
