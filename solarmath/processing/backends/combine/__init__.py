"""Operations combining several images into one."""
