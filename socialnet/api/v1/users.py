from typing import List

from fastapi import APIRouter, Depends, status

from ... import schemas
from ...core.security import Identity
from ...services.accounts import AccountService
from ...services.graph import SocialGraphManager
from ..deps import get_account_service, get_current_identity, get_graph_manager

router = APIRouter()


@router.post("/register", response_model=schemas.RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(data: schemas.AccountCreate, accounts: AccountService = Depends(get_account_service)):
    """
    Creates an account and returns it with a fresh token
    """
    account, token = accounts.register(data)
    return schemas.RegisterResponse(user=schemas.AccountResponse.model_validate(account), token=token)


@router.post("/login", response_model=schemas.LoginResponse)
def login(data: schemas.LoginRequest, accounts: AccountService = Depends(get_account_service)):
    account, token = accounts.login(data.email, data.password)
    profile = schemas.AccountResponse.model_validate(account)
    return schemas.LoginResponse(**profile.model_dump(), token=token)


@router.get("/profile", response_model=schemas.AccountResponse)
def read_profile(caller: Identity = Depends(get_current_identity),
                 accounts: AccountService = Depends(get_account_service)):
    return accounts.get_profile(caller)


@router.put("/profile", response_model=schemas.AccountResponse)
def update_profile(data: schemas.ProfileUpdate,
                   caller: Identity = Depends(get_current_identity),
                   accounts: AccountService = Depends(get_account_service)):
    return accounts.update_profile(caller, data)


@router.post("/follow/{user_id}", response_model=schemas.Message)
def follow(user_id: int,
           caller: Identity = Depends(get_current_identity),
           graph: SocialGraphManager = Depends(get_graph_manager)):
    graph.follow(caller, user_id)
    return {"message": "Successfully followed the user"}


@router.post("/unfollow/{user_id}", response_model=schemas.Message)
def unfollow(user_id: int,
             caller: Identity = Depends(get_current_identity),
             graph: SocialGraphManager = Depends(get_graph_manager)):
    graph.unfollow(caller, user_id)
    return {"message": "Successfully unfollowed the user"}


@router.get("/followers/{user_id}", response_model=List[schemas.AccountSummary])
def list_followers(user_id: int, graph: SocialGraphManager = Depends(get_graph_manager)):
    """
    Public listing of the accounts following user_id
    """
    return graph.list_followers(user_id)


@router.get("/following/{user_id}", response_model=List[schemas.AccountSummary])
def list_following(user_id: int, graph: SocialGraphManager = Depends(get_graph_manager)):
    """
    Public listing of the accounts user_id follows
    """
    return graph.list_following(user_id)
