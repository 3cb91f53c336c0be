from typing import List

from fastapi import APIRouter, Depends, Query, status

from ... import schemas
from ...core.security import Identity
from ...services.graph import SocialGraphManager
from ...services.posts import PostService
from ..deps import get_current_identity, get_graph_manager, get_post_service

router = APIRouter()


@router.post("/upload", response_model=schemas.PostResponse, status_code=status.HTTP_201_CREATED)
def upload(data: schemas.PostCreate,
           caller: Identity = Depends(get_current_identity),
           posts: PostService = Depends(get_post_service)):
    return posts.upload(caller, data)


@router.post("/like/{post_id}", response_model=schemas.Message)
def like(post_id: int,
         caller: Identity = Depends(get_current_identity),
         graph: SocialGraphManager = Depends(get_graph_manager)):
    graph.like(caller, post_id)
    return {"message": "Post liked successfully"}


@router.post("/unlike/{post_id}", response_model=schemas.Message)
def unlike(post_id: int,
           caller: Identity = Depends(get_current_identity),
           graph: SocialGraphManager = Depends(get_graph_manager)):
    graph.unlike(caller, post_id)
    return {"message": "Post unliked successfully"}


@router.delete("/delete/{post_id}", response_model=schemas.Message)
def delete(post_id: int,
           caller: Identity = Depends(get_current_identity),
           posts: PostService = Depends(get_post_service)):
    posts.delete(caller, post_id)
    return {"message": "Post deleted successfully"}


@router.get("/liked-users/{post_id}", response_model=List[schemas.AccountSummary])
def liked_users(post_id: int, graph: SocialGraphManager = Depends(get_graph_manager)):
    return graph.list_likers(post_id)


@router.get("/explore", response_model=List[schemas.PostResponse])
def explore(skip: int = Query(0, ge=0), limit: int = Query(20, ge=1, le=100),
            posts: PostService = Depends(get_post_service)):
    """
    Public, non-deleted posts, newest first
    """
    return posts.explore(skip=skip, limit=limit)


@router.get("/{post_id}", response_model=schemas.PostResponse)
def read_post(post_id: int, posts: PostService = Depends(get_post_service)):
    return posts.get(post_id)
